"""
Declarative base shared by every Ethereal Nexus ORM model.

All tables live in the ``public`` schema of the hosted database; foreign keys
between models require a single metadata object.
"""

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def pg_enum(enum_cls, name: str) -> SAEnum:
    """Map a str Enum onto an existing Postgres enum type by value."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
