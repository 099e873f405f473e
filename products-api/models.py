from decimal import Decimal
from sqlalchemy import Column, Integer, Numeric, String
from sqlalchemy.types import TypeDecorator
from database import Base


class Price(TypeDecorator):
    """NUMERIC(18, 2) column; SQLite has no exact decimal type, so it gets the text form."""

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String())
        return dialect.type_descriptor(Numeric(18, 2))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    price = Column(Price(18, 2), nullable=False)  # précision fixe: 18 chiffres, 2 décimales
    image = Column(String, nullable=False)

    def __repr__(self):
        return f"<ProductModel(id={self.id}, name='{self.name}', price={self.price})>"
