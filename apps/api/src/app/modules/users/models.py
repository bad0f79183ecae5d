"""
User Models

Form owners: registered users who each own one public application form.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel

DEFAULT_FORM_TITLE = "Job Application Form"


class User(BaseModel):
    """
    Form owner account.

    The owner's public form lives at /form/{id}; its configuration is stored
    inline since every owner has exactly one form.
    """

    __tablename__ = "users"

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Profile fields
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    organization_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Account status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Public form configuration
    form_title: Mapped[str] = mapped_column(
        String(200),
        default=DEFAULT_FORM_TITLE,
        nullable=False,
    )
    form_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    form_is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    accepting_applications: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    @property
    def display_name(self) -> str:
        """Name used in outgoing email."""
        return self.organization_name or self.full_name or self.username

    @property
    def form_open(self) -> bool:
        """Whether the public form currently takes submissions."""
        return self.is_active and self.form_is_active and self.accepting_applications
