"""
Repository factory.

This module resolves the repository class configured for a model. Models
without a configured repository, or whose configured class cannot be
imported, get a generic ``Repository`` bound to the model.
"""

import importlib
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional, Type, Union

from sqlalchemy.orm import Session

from toolkit.models.base import ModelIdentifier, model_identifier
from toolkit.repositories.base import Repository
from toolkit.utils.config import get_settings
from toolkit.utils.logger import get_logger

logger = get_logger(__name__)

RepositoryReference = Union[str, Type[Repository]]


class RepositoryFactory:
    """
    Factory for creating model repositories.

    The mapping goes from model identifier to repository class, given either
    as a class or as a dotted import path. Without an explicit mapping,
    ``Settings.REPOSITORY_MAPPING`` is read on each resolution. Once a
    configured class has been resolved for a model it is cached for the
    lifetime of the factory, so later mapping changes do not affect that model.
    """

    def __init__(self, mapping: Optional[Mapping[str, RepositoryReference]] = None):
        self._mapping = mapping
        self._cache: Dict[str, Type[Repository]] = {}

    @property
    def mapping(self) -> Mapping[str, RepositoryReference]:
        if self._mapping is not None:
            return self._mapping
        return get_settings().REPOSITORY_MAPPING

    def for_model(self, model: ModelIdentifier, session: Session) -> Repository:
        """
        Get a repository for a model.

        Args:
            model: Model class or identifier string
            session (Session): Session the repository will use

        Returns:
            Repository: The configured repository, or a generic one bound to
            the model
        """
        key = model_identifier(model)

        repository_class = self._cache.get(key)
        if repository_class is None:
            repository_class = self._configured_class(model)
            if repository_class is None:
                return Repository(session, model)
            self._cache[key] = repository_class
            logger.debug(f"Resolved {repository_class.__name__} for {key}")

        repository = repository_class(session)
        if repository.model is None:
            # Mapped classes that do not fix a model serve the requested one
            repository.model = model
        return repository

    def _configured_class(self, model: ModelIdentifier) -> Optional[Type[Repository]]:
        mapping = self.mapping
        for key in self._lookup_keys(model):
            if key in mapping:
                return self._load(key, mapping[key])
        return None

    @staticmethod
    def _lookup_keys(model: ModelIdentifier) -> Iterable[str]:
        if isinstance(model, str):
            return (model,)
        return (model_identifier(model), model.__name__)

    @staticmethod
    def _load(key: str, reference: RepositoryReference) -> Optional[Type[Repository]]:
        if isinstance(reference, str):
            module_path, _, class_name = reference.rpartition(".")
            try:
                reference = getattr(importlib.import_module(module_path), class_name)
            except (ImportError, AttributeError, ValueError) as e:
                logger.warning(f"Repository '{reference}' configured for {key} cannot be imported: {str(e)}")
                return None

        if not (isinstance(reference, type) and issubclass(reference, Repository)):
            logger.warning(f"{reference!r} configured for {key} is not a Repository subclass")
            return None
        return reference


@lru_cache()
def get_repository_factory() -> RepositoryFactory:
    """Get the process-wide factory reading its mapping from settings."""
    return RepositoryFactory()
