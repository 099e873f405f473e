"""Storage access for products.

Handlers only talk to ``ProductRepository``; ``SqlAlchemyProductRepository``
is the single backing implementation.
"""
from abc import ABC, abstractmethod
from decimal import Decimal, localcontext
from typing import List, Optional
from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session
from models import ProductModel
from schemas import ProductCreate

PRICE_QUANTUM = Decimal("0.01")


class ProductRepository(ABC):

    @abstractmethod
    def list_all(self) -> List[ProductModel]:
        """Return every product in storage order."""

    @abstractmethod
    def get(self, product_id: int) -> Optional[ProductModel]:
        """Return the product with this id, or None."""

    @abstractmethod
    def create(self, data: ProductCreate) -> ProductModel:
        """Persist a new product; storage assigns the id."""

    @abstractmethod
    def update(self, product_id: int, data: ProductCreate) -> Optional[ProductModel]:
        """Overwrite the mutable fields, or return None if the product does not exist."""

    @abstractmethod
    def delete(self, product_id: int) -> bool:
        """Remove the product; False if it does not exist."""


class SqlAlchemyProductRepository(ProductRepository):
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[ProductModel]:
        return list(self.session.scalars(select(ProductModel)))

    def get(self, product_id: int) -> Optional[ProductModel]:
        return self.session.get(ProductModel, product_id)

    def create(self, data: ProductCreate) -> ProductModel:
        product = ProductModel(
            name=data.name,
            description=data.description,
            price=_quantize(data.price),
            image=data.image,
        )
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        logger.info(f"Product persisted with ID {product.id}")
        return product

    def update(self, product_id: int, data: ProductCreate) -> Optional[ProductModel]:
        product = self.get(product_id)
        if product is None:
            return None
        # L'identifiant n'est jamais modifié
        product.name = data.name
        product.description = data.description
        product.price = _quantize(data.price)
        product.image = data.image
        self.session.commit()
        self.session.refresh(product)
        return product

    def delete(self, product_id: int) -> bool:
        product = self.get(product_id)
        if product is None:
            return False
        self.session.delete(product)
        self.session.commit()
        return True


def _quantize(price: Decimal) -> Decimal:
    price = Decimal(price)
    with localcontext() as ctx:
        # Assez de chiffres pour la partie entière plus les deux décimales
        ctx.prec = max(ctx.prec, price.adjusted() + 3)
        return price.quantize(PRICE_QUANTUM)
