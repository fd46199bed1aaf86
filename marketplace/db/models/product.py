# marketplace/db/models/product.py
from typing import Optional
from sqlalchemy import Column, String, Text, Integer, ForeignKey, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base


class Product(Base):
    """
    Catalog product. Offers list a product at a price from a warehouse.
    Technical parameters live in ProductParameter rows.
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    parameters = relationship(
        "ProductParameter", back_populates="product", cascade="all, delete-orphan"
    )
    offers = relationship("Offer", back_populates="product")

    def parameter_value(self, name: str) -> Optional[str]:
        """Raw value of the named technical parameter, if any"""
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter.value
        return None

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"


class ProductParameter(Base):
    __tablename__ = "product_parameters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False, comment="e.g. 'Module Power'")
    value = Column(String(255), comment="Raw value as entered, e.g. '410 Wp'")

    product = relationship("Product", back_populates="parameters")

    def __repr__(self):
        return f"<ProductParameter(name='{self.name}', value='{self.value}')>"
