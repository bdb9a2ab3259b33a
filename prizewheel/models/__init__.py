from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .kv import KeyValueEntry  # noqa: F401

__all__ = [
    "Base",
    "KeyValueEntry",
]
