"""
scopegate Adapters Module.

Contains the abstract CRUD client interface and the bundled clients.
"""

from scopegate.adapters.base import CrudClient, id_column_from_meta
from scopegate.adapters.memory import InMemoryCrudClient

__all__ = [
    "CrudClient",
    "InMemoryCrudClient",
    "id_column_from_meta",
]


# Lazy import so that importing scopegate does not pull in SQLAlchemy
def get_sqlalchemy_client():
    """Get the SQLAlchemy CRUD client class."""
    from scopegate.adapters.sqlalchemy import SQLAlchemyCrudClient
    return SQLAlchemyCrudClient
