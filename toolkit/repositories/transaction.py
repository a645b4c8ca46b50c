"""
Transaction management for repositories.

A ``TransactionScope`` wraps a SQLAlchemy session's transaction API with a
single guard flag: a manually started transaction must be committed or rolled
back before another one can begin. Transactions started inside an atomic
callback become savepoints of the callback's transaction. Each session carries
its own scope, so separate sessions (and therefore separate requests) never
share the flag.
"""

from typing import Any, Callable, Optional

from sqlalchemy.orm import Session, SessionTransaction

from toolkit.exceptions import NoActiveTransactionError, TransactionAlreadyActiveError
from toolkit.utils.logger import get_logger

logger = get_logger(__name__)

SCOPE_INFO_KEY = "toolkit.transaction_scope"


class TransactionScope:
    """
    Transaction state for a single database session.

    Work started while an atomic callback is running nests inside it through
    a SAVEPOINT, so the callback's own commit or rollback still decides the
    outcome of everything it did.

    Attributes:
        session (Session): SQLAlchemy session the scope controls
        in_transaction (bool): Whether a manually started transaction is open
    """

    def __init__(self, session: Session):
        self.session = session
        self.in_transaction = False
        self._atomic_depth = 0
        self._savepoint: Optional[SessionTransaction] = None
        self._savepoint_depth = 0

    @classmethod
    def for_session(cls, session: Session) -> "TransactionScope":
        """
        Get the scope bound to a session, creating it on first use.

        Args:
            session (Session): SQLAlchemy database session

        Returns:
            TransactionScope: The session's transaction scope
        """
        scope = session.info.get(SCOPE_INFO_KEY)
        if scope is None:
            scope = cls(session)
            session.info[SCOPE_INFO_KEY] = scope
        return scope

    @property
    def is_active(self) -> bool:
        """Whether a manual transaction or an atomic callback is running."""
        return self.in_transaction or self._atomic_depth > 0

    def transaction(self, callback: Optional[Callable[[Session], Any]] = None) -> Any:
        """
        Start a transaction, or run a callback inside one.

        With a callback, the callback receives the session and runs
        atomically: the transaction is committed when it returns and rolled
        back if it raises. Without a callback, a transaction is begun and
        stays open until ``commit`` or ``rollback`` is called. Inside a
        running callback both forms open a SAVEPOINT instead.

        Args:
            callback: Optional callable run inside the transaction

        Returns:
            Any: The callback's return value, or None when no callback is given

        Raises:
            TransactionAlreadyActiveError: If a manual transaction is already open
        """
        if self.in_transaction:
            raise TransactionAlreadyActiveError()

        if callback is not None:
            return self._run_atomic(callback)

        if self._atomic_depth:
            self._savepoint = self.session.begin_nested()
            self._savepoint_depth = self._atomic_depth
        elif not self.session.in_transaction():
            self.session.begin()
        self.in_transaction = True
        logger.debug("Transaction started")
        return None

    def _run_atomic(self, callback: Callable[[Session], Any]) -> Any:
        nested = self._atomic_depth > 0
        transaction = self.session.begin_nested() if nested else None
        self._atomic_depth += 1
        try:
            result = callback(self.session)
            if nested:
                transaction.commit()
            else:
                self.session.commit()
        except Exception as e:
            logger.warning(f"Rolling back transaction after error: {str(e)}")
            if nested:
                transaction.rollback()
            else:
                self.session.rollback()
            raise
        finally:
            self._release_savepoint_of(self._atomic_depth)
            self._atomic_depth -= 1
        return result

    def _release_savepoint_of(self, depth: int) -> None:
        # A manual transaction opened inside a callback ends with that callback
        if self._savepoint is not None and self._savepoint_depth == depth:
            self._savepoint = None
            self._savepoint_depth = 0
            self.in_transaction = False

    def rollback(self) -> None:
        """
        Roll back the current transaction.

        Raises:
            NoActiveTransactionError: If no transaction was started
        """
        if not self.in_transaction:
            raise NoActiveTransactionError("rollback")
        if self._savepoint is not None:
            self._savepoint.rollback()
            self._savepoint = None
        else:
            self.session.rollback()
        self.in_transaction = False
        logger.debug("Transaction rolled back")

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            NoActiveTransactionError: If no transaction was started
        """
        if not self.in_transaction:
            raise NoActiveTransactionError("commit")
        if self._savepoint is not None:
            self._savepoint.commit()
            self._savepoint = None
        else:
            self.session.commit()
        self.in_transaction = False
        logger.debug("Transaction committed")
