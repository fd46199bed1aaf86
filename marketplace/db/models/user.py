# marketplace/db/models/user.py
from sqlalchemy import Column, String, Integer, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
from marketplace.db.base import Base


class Business(Base):
    """Company a seller belongs to; offers are owned per business"""

    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    users = relationship("User", back_populates="business")

    def __repr__(self):
        return f"<Business(id={self.id}, name='{self.name}')>"


class User(Base):
    """Marketplace user. Sellers own offers and warehouses."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    api_key_hash = Column(
        String(64), unique=True, index=True, comment="sha256 of the bearer token"
    )
    permissions = Column(JSON, nullable=False, default=list)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    business = relationship("Business", back_populates="users")
    offers = relationship("Offer", back_populates="user")
    warehouses = relationship("Warehouse", back_populates="user")

    def has_permission(self, permission) -> bool:
        value = getattr(permission, "value", permission)
        return value in (self.permissions or [])

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
