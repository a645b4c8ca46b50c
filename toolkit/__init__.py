"""
Repository toolkit.

Generic repository pattern for SQLAlchemy models: CRUD helpers, dynamic
finders, a guarded transaction wrapper and a configurable repository factory.
"""

from toolkit.repositories.base import Repository
from toolkit.repositories.factory import RepositoryFactory, get_repository_factory
from toolkit.repositories.transaction import TransactionScope

__all__ = ['Repository', 'RepositoryFactory', 'TransactionScope', 'get_repository_factory']
