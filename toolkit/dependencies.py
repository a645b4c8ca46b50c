"""
FastAPI dependencies for injecting repositories into route handlers.

Usage:
    from fastapi import Depends, FastAPI
    from toolkit.dependencies import provide_repository

    app = FastAPI()

    @app.get("/users")
    def list_users(users = Depends(provide_repository("User"))):
        return [u.email for u in users.get_by(is_active=True)]
"""

from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from toolkit.models.base import ModelIdentifier
from toolkit.repositories.base import Repository
from toolkit.repositories.factory import RepositoryFactory, get_repository_factory
from toolkit.utils.database import get_db


def provide_repository(
    model: ModelIdentifier,
    factory: Optional[RepositoryFactory] = None
) -> Callable[[Session], Repository]:
    """
    Build a dependency resolving the repository for a model.

    Args:
        model: Model class or identifier string
        factory: Factory to resolve with. Defaults to the process-wide factory.

    Returns:
        Callable: Dependency returning the repository bound to the request's session
    """
    def _get_repository(db: Session = Depends(get_db)) -> Repository:
        return (factory or get_repository_factory()).for_model(model, db)

    return _get_repository
