"""User model - owned by the auth layer, read here for delivery addresses."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ferm.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Player account.

    Maps to the `users` table. The garden pipeline only reads `email`.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id})>"
