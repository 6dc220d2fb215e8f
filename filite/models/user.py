"""User model."""

from sqlalchemy import Boolean, Column, String

from filite.database import Base
from filite.models.mixins import CreatedMixin


class User(Base, CreatedMixin):
    """User model for authentication and entry ownership."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    password_hash = Column(String(255), nullable=False)
    admin = Column(Boolean, nullable=False, default=False)
