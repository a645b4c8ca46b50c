"""
Base model configuration for SQLAlchemy ORM.

This module defines the declarative base that toolkit-aware models inherit
from, along with helpers the repositories use to turn model identifiers into
mapped classes and to inspect their columns.

Usage:
    from toolkit.models.base import Base

    class MyModel(Base):
        __tablename__ = "my_table"
        __fillable__ = ("name",)

        id = Column(Integer, primary_key=True)
        name = Column(String)

        def before_save(self) -> bool:
            return bool(self.name)
"""

import importlib
from typing import Any, List, Tuple, Type, Union

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper, declarative_base

from toolkit.exceptions import UnknownModelError

Base = declarative_base()

ModelIdentifier = Union[str, Type[Any]]


def _mapper_for(model: Any) -> Mapper:
    mapper = inspect(model, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise UnknownModelError(f"{model!r} is not a mapped SQLAlchemy model")
    return mapper


def model_identifier(model: ModelIdentifier) -> str:
    """
    Get the canonical string key for a model.

    Args:
        model: Model class or identifier string

    Returns:
        str: ``module.QualName`` for classes, the string itself otherwise
    """
    if isinstance(model, str):
        return model
    return f"{model.__module__}.{model.__qualname__}"


def resolve_model(identifier: ModelIdentifier) -> Type[Any]:
    """
    Resolve a model identifier to a mapped class.

    Classes are returned as they are. Strings containing a dot are imported
    as ``package.module.ClassName``; bare names are looked up among the
    classes registered on ``Base``.

    Args:
        identifier: Model class, dotted import path or class name

    Returns:
        Type: The mapped model class

    Raises:
        UnknownModelError: If the identifier does not name a mapped class
    """
    if not isinstance(identifier, str):
        return _mapper_for(identifier).class_

    if "." in identifier:
        module_path, _, class_name = identifier.rpartition(".")
        try:
            module = importlib.import_module(module_path)
            model = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise UnknownModelError(f"Cannot import model '{identifier}': {e}") from e
        return _mapper_for(model).class_

    matches = [m.class_ for m in Base.registry.mappers if m.class_.__name__ == identifier]
    if not matches:
        raise UnknownModelError(f"No model named '{identifier}' is registered")
    if len(matches) > 1:
        raise UnknownModelError(f"Model name '{identifier}' is ambiguous, use its dotted path")
    return matches[0]


def column_keys(model: Type[Any]) -> List[str]:
    """Attribute names of every mapped column on the model."""
    return [attr.key for attr in _mapper_for(model).column_attrs]


def primary_key_columns(model: Type[Any]) -> Tuple[Any, ...]:
    """Primary key columns of the model, in mapper order."""
    return tuple(_mapper_for(model).primary_key)
