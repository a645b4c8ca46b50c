"""
Base repository pattern implementation for database operations.

This module provides a generic repository that works with any SQLAlchemy
model. It can be used directly for a model or extended by model-specific
repositories. It includes the common create/delete operations, column
finders (``get_by`` / ``get_one_by`` and their dynamic ``get_by_<field>``
forms) and access to the session's transaction scope.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
import logging

from toolkit.exceptions import FinderArgumentError, UnknownColumnError, UnknownModelError
from toolkit.models.base import ModelIdentifier, column_keys, primary_key_columns, resolve_model
from toolkit.repositories.finders import ONE, finder_names, is_collection, parse_finder_name
from toolkit.repositories.transaction import TransactionScope

# Type variable for the model
T = TypeVar('T')

logger = logging.getLogger(__name__)

class Repository(Generic[T]):
    """
    Generic repository for database operations.

    Instances are bound to a session and a single model. The model may be
    given as a mapped class or as an identifier string, which is resolved
    the first time the repository needs it. Subclasses may fix their model
    with a ``model`` class attribute or by passing it to ``__init__``.

    Attributes:
        session (Session): SQLAlchemy database session
        model: Model class or identifier the repository is bound to
    """

    model: Optional[ModelIdentifier] = None

    def __init__(self, session: Session, model: Optional[ModelIdentifier] = None):
        """
        Initialize the repository with a database session and model.

        Args:
            session (Session): SQLAlchemy database session
            model: Model class or identifier; defaults to the class attribute
        """
        self.session = session
        if model is not None:
            self.model = model
        self._model_class: Optional[Type[T]] = None

    @classmethod
    def for_model(cls, model: ModelIdentifier, session: Session) -> "Repository":
        """
        Get the repository configured for a model.

        Shortcut for ``get_repository_factory().for_model(model, session)``.
        """
        from toolkit.repositories.factory import get_repository_factory
        return get_repository_factory().for_model(model, session)

    @property
    def model_class(self) -> Type[T]:
        """
        The mapped class behind ``model``, resolved on first access.

        Raises:
            UnknownModelError: If no model is bound or it cannot be resolved
        """
        if self._model_class is None:
            if self.model is None:
                raise UnknownModelError(f"{type(self).__name__} has no model bound")
            self._model_class = resolve_model(self.model)
        return self._model_class

    @property
    def transactions(self) -> TransactionScope:
        """Transaction scope of the repository's session."""
        return TransactionScope.for_session(self.session)

    def make(self, **attributes: Any) -> T:
        """
        Build a new, unsaved model instance.

        Args:
            **attributes: Attribute values passed to the model constructor

        Returns:
            T: The new instance
        """
        return self.model_class(**attributes)

    def get_key(self, model_or_id: Any) -> Any:
        """
        Get the primary key of a model instance.

        Anything that is not an instance of the model is assumed to already
        be a key and is returned unchanged.

        Args:
            model_or_id (Any): Model instance or primary key value

        Returns:
            Any: Primary key value, a tuple for composite keys
        """
        if not isinstance(model_or_id, self.model_class):
            return model_or_id
        key = inspect(self.model_class).primary_key_from_instance(model_or_id)
        return key[0] if len(key) == 1 else tuple(key)

    def fill(self, instance: T, data: Mapping[str, Any]) -> T:
        """
        Assign fillable attributes from a mapping.

        Models may list assignable attributes in ``__fillable__``; without
        it every mapped column is fillable. Other keys are ignored.

        Args:
            instance (T): Model instance to populate
            data (Mapping[str, Any]): Attribute values

        Returns:
            T: The same instance
        """
        fillable = self._fillable()
        for key, value in data.items():
            if key in fillable:
                setattr(instance, key, value)
            else:
                logger.debug(f"Ignoring non-fillable attribute '{key}' for {self.model_class.__name__}")
        return instance

    def _fillable(self) -> set:
        declared = getattr(self.model_class, "__fillable__", None)
        if declared is None:
            return set(column_keys(self.model_class))
        return set(declared)

    @contextmanager
    def _write(self, action: str) -> Iterator[None]:
        """
        Persist the changes made inside the block.

        Changes are flushed while a transaction is open on the session and
        committed otherwise. Database errors are logged and re-raised.
        """
        scope = self.transactions
        try:
            yield
            if scope.is_active:
                self.session.flush()
            else:
                self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error during {action} of {self.model_class.__name__}: {str(e)}")
            if not scope.is_active:
                self.session.rollback()
            raise

    def create(self, data: Mapping[str, Any]) -> Optional[T]:
        """
        Create a new record.

        Args:
            data (Mapping[str, Any]): Dictionary of field values

        Returns:
            Optional[T]: Created model instance, or None if the model's
            ``before_save`` hook refused the save
        """
        instance = self.fill(self.make(), data)

        before_save = getattr(instance, "before_save", None)
        if before_save is not None and before_save() is False:
            logger.info(f"Save of {self.model_class.__name__} refused by before_save")
            return None

        with self._write("create"):
            self.session.add(instance)
        if not self.transactions.is_active:
            self.session.refresh(instance)
        return instance

    def delete(self, target: Any) -> Any:
        """
        Delete a model instance, or the record(s) with a primary key.

        Args:
            target (Any): Model instance or primary key value

        Returns:
            Any: True for an instance, the number of deleted rows for a key
        """
        if isinstance(target, self.model_class):
            return self.delete_instance(target)
        return self.delete_by_id(target)

    def delete_instance(self, instance: T) -> bool:
        """
        Delete a loaded model instance.

        Args:
            instance (T): Persistent model instance

        Returns:
            bool: True once the instance has been deleted
        """
        with self._write("delete"):
            self.session.delete(instance)
        return True

    def delete_by_id(self, id: Any) -> int:
        """
        Delete records by primary key.

        Args:
            id (Any): Primary key value, or a tuple of values for composite keys

        Returns:
            int: Number of deleted rows, 0 if none matched
        """
        pk = primary_key_columns(self.model_class)
        if len(pk) > 1:
            if not isinstance(id, (tuple, list)) or len(id) != len(pk):
                raise FinderArgumentError(
                    f"{self.model_class.__name__} has a composite key of {len(pk)} columns"
                )
            values = tuple(id)
        else:
            values = (id,)

        query = self.session.query(self.model_class)
        for column, value in zip(pk, values):
            query = query.filter(column == value)

        with self._write("delete"):
            count = query.delete()
        return count

    def get_by(self, *args: Any, **filters: Any) -> List[T]:
        """
        Get every record matching column criteria.

        Accepts ``get_by("status", "active")``, ``get_by({"status": "active"})``
        or keyword filters, alone or combined with a mapping. Collection
        values match with IN, anything else with equality, and all criteria
        must hold. Without criteria every record is returned.

        Returns:
            List[T]: Matching model instances
        """
        return self._query_by(args, filters).all()

    def get_one_by(self, *args: Any, **filters: Any) -> Optional[T]:
        """
        Get the first record matching column criteria.

        Takes the same arguments as ``get_by``.

        Returns:
            Optional[T]: First matching model instance, None if nothing matches
        """
        return self._query_by(args, filters).first()

    def _query_by(self, args: tuple, filters: Dict[str, Any]) -> Query:
        criteria = self._criteria(args)
        criteria.update(filters)

        query = self.session.query(self.model_class)
        for column, value in criteria.items():
            attribute = self._column(column)
            if is_collection(value):
                query = query.filter(attribute.in_(list(value)))
            else:
                query = query.filter(attribute == value)
        return query

    def _criteria(self, args: tuple) -> Dict[str, Any]:
        if not args:
            return {}
        if len(args) == 2:
            column, value = args
            if not isinstance(column, str):
                raise FinderArgumentError(f"Column name must be a string, got {type(column).__name__}")
            return {column: value}
        if len(args) == 1:
            if isinstance(args[0], Mapping):
                return dict(args[0])
            if isinstance(args[0], str):
                raise FinderArgumentError(f"No value given for column '{args[0]}'")
            raise FinderArgumentError(f"Expected a mapping of criteria, got {type(args[0]).__name__}")
        raise FinderArgumentError(f"Expected (column, value) or a mapping, got {len(args)} arguments")

    def _column(self, name: str) -> Any:
        if name not in column_keys(self.model_class):
            raise UnknownColumnError(self.model_class.__name__, name)
        return getattr(self.model_class, name)

    def __getattr__(self, name: str) -> Callable[[Any], Any]:
        """
        Resolve dynamic finders such as ``get_by_email`` or ``getOneById``.

        The returned callable takes exactly one value and forwards it to
        ``get_by`` or ``get_one_by`` for the column named in the method.
        """
        if name.startswith("_"):
            raise AttributeError(name)

        message = f"'{type(self).__name__}' object has no attribute '{name}'"
        finder = parse_finder_name(name)
        if finder is None:
            raise AttributeError(message)
        try:
            columns = column_keys(self.model_class)
        except UnknownModelError as e:
            raise AttributeError(message) from e
        if finder.column not in columns:
            raise AttributeError(message)

        lookup = self.get_one_by if finder.kind == ONE else self.get_by
        column = finder.column

        def dynamic_finder(value):
            return lookup(column, value)

        dynamic_finder.__name__ = name
        return dynamic_finder

    def __dir__(self):
        names = set(super().__dir__())
        try:
            for column in column_keys(self.model_class):
                names.update(finder_names(column))
        except UnknownModelError:
            pass
        return sorted(names)

    def transaction(self, callback: Optional[Callable[[Session], Any]] = None) -> Any:
        """Start a transaction, or run ``callback`` inside one. See ``TransactionScope``."""
        return self.transactions.transaction(callback)

    def commit(self) -> None:
        """Commit the transaction started with ``transaction()``."""
        self.transactions.commit()

    def rollback(self) -> None:
        """Roll back the transaction started with ``transaction()``."""
        self.transactions.rollback()
