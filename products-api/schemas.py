from decimal import Decimal
from typing import Annotated, Any, Optional
from pydantic import BaseModel, ConfigDict, PlainSerializer

# Decimal en base, nombre JSON en sortie
PriceNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ProductCreate(BaseModel):
    name: str
    description: str
    price: Decimal
    image: str


class ProductUpdate(ProductCreate):
    # Doit correspondre à l'ID de l'URL
    id: Optional[int] = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: PriceNumber
    image: str


class Envelope(BaseModel):
    """Uniform response wrapper shared by success and error paths."""

    success: bool
    message: str
    status: int
    data: Optional[Any] = None
