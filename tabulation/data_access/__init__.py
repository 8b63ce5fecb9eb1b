from .base import TabulationStore
from .sql_store import SQLAlchemyStore

__all__ = ["TabulationStore", "SQLAlchemyStore"]
