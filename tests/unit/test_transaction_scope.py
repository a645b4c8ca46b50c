"""
Unit tests for TransactionScope against a mocked session.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from toolkit.exceptions import NoActiveTransactionError, TransactionAlreadyActiveError
from toolkit.repositories.transaction import SCOPE_INFO_KEY, TransactionScope


def make_session():
    session = MagicMock(spec=Session)
    session.info = {}
    session.in_transaction.return_value = False
    return session


class TestForSession:
    """Tests for TransactionScope.for_session."""

    def test_creates_scope_once(self, mock_session):
        scope = TransactionScope.for_session(mock_session)
        assert mock_session.info[SCOPE_INFO_KEY] is scope
        assert TransactionScope.for_session(mock_session) is scope

    def test_sessions_have_independent_flags(self):
        first = TransactionScope.for_session(make_session())
        second = TransactionScope.for_session(make_session())

        first.transaction()

        assert first.in_transaction
        assert not second.in_transaction
        second.transaction()
        assert second.in_transaction


class TestManualTransaction:
    """Tests for transaction() without a callback."""

    def test_begins_and_sets_flag(self, mock_session):
        scope = TransactionScope(mock_session)
        assert scope.transaction() is None
        mock_session.begin.assert_called_once()
        assert scope.in_transaction
        assert scope.is_active

    def test_reuses_autobegun_transaction(self, mock_session):
        mock_session.in_transaction.return_value = True
        scope = TransactionScope(mock_session)
        scope.transaction()
        mock_session.begin.assert_not_called()
        assert scope.in_transaction

    def test_second_start_fails(self, mock_session):
        scope = TransactionScope(mock_session)
        scope.transaction()
        with pytest.raises(TransactionAlreadyActiveError):
            scope.transaction()

    def test_callback_while_active_fails(self, mock_session):
        scope = TransactionScope(mock_session)
        scope.transaction()
        callback = MagicMock()
        with pytest.raises(TransactionAlreadyActiveError):
            scope.transaction(callback)
        callback.assert_not_called()

    def test_commit_clears_flag(self, mock_session):
        scope = TransactionScope(mock_session)
        scope.transaction()
        scope.commit()
        mock_session.commit.assert_called_once()
        assert not scope.in_transaction
        scope.transaction()

    def test_rollback_clears_flag(self, mock_session):
        scope = TransactionScope(mock_session)
        scope.transaction()
        scope.rollback()
        mock_session.rollback.assert_called_once()
        assert not scope.in_transaction

    def test_commit_outside_transaction(self, mock_session):
        scope = TransactionScope(mock_session)
        with pytest.raises(NoActiveTransactionError, match="commit outside"):
            scope.commit()
        mock_session.commit.assert_not_called()

    def test_rollback_outside_transaction(self, mock_session):
        scope = TransactionScope(mock_session)
        with pytest.raises(NoActiveTransactionError, match="rollback outside"):
            scope.rollback()
        mock_session.rollback.assert_not_called()


class TestCallbackTransaction:
    """Tests for transaction() with a callback."""

    def test_commits_and_returns_result(self, mock_session):
        scope = TransactionScope(mock_session)
        result = scope.transaction(lambda session: ("done", session))
        assert result == ("done", mock_session)
        mock_session.commit.assert_called_once()
        mock_session.rollback.assert_not_called()
        assert not scope.in_transaction

    def test_rolls_back_and_reraises(self, mock_session):
        scope = TransactionScope(mock_session)

        def failing(session):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            scope.transaction(failing)
        mock_session.rollback.assert_called_once()
        mock_session.commit.assert_not_called()
        assert not scope.is_active

    def test_active_while_callback_runs(self, mock_session):
        scope = TransactionScope(mock_session)
        seen = []
        scope.transaction(lambda session: seen.append(scope.is_active))
        assert seen == [True]
        assert not scope.is_active

    def test_commit_inside_callback_fails(self, mock_session):
        scope = TransactionScope(mock_session)
        with pytest.raises(NoActiveTransactionError):
            scope.transaction(lambda session: scope.commit())


class TestNestedTransaction:
    """Tests for transactions started inside a running callback."""

    def test_manual_start_opens_savepoint(self, mock_session):
        scope = TransactionScope(mock_session)
        savepoint = mock_session.begin_nested.return_value

        def work(session):
            scope.transaction()
            assert scope.in_transaction
            scope.commit()
            assert not scope.in_transaction

        scope.transaction(work)

        mock_session.begin_nested.assert_called_once()
        mock_session.begin.assert_not_called()
        savepoint.commit.assert_called_once()
        mock_session.commit.assert_called_once()

    def test_manual_rollback_only_rolls_back_savepoint(self, mock_session):
        scope = TransactionScope(mock_session)
        savepoint = mock_session.begin_nested.return_value

        def work(session):
            scope.transaction()
            scope.rollback()
            return "kept"

        assert scope.transaction(work) == "kept"
        savepoint.rollback.assert_called_once()
        mock_session.rollback.assert_not_called()
        mock_session.commit.assert_called_once()

    def test_unfinished_savepoint_ends_with_callback(self, mock_session):
        scope = TransactionScope(mock_session)
        scope.transaction(lambda session: scope.transaction())

        assert not scope.in_transaction
        assert not scope.is_active
        scope.transaction()
        mock_session.begin.assert_called_once()

    def test_second_manual_start_inside_callback_fails(self, mock_session):
        scope = TransactionScope(mock_session)

        def work(session):
            scope.transaction()
            scope.transaction()

        with pytest.raises(TransactionAlreadyActiveError):
            scope.transaction(work)
        mock_session.rollback.assert_called_once()
        assert not scope.is_active

    def test_nested_callback_commits_savepoint(self, mock_session):
        scope = TransactionScope(mock_session)
        savepoint = mock_session.begin_nested.return_value

        result = scope.transaction(lambda session: scope.transaction(lambda inner: "inner"))

        assert result == "inner"
        savepoint.commit.assert_called_once()
        mock_session.commit.assert_called_once()

    def test_failing_nested_callback_rolls_back_savepoint(self, mock_session):
        scope = TransactionScope(mock_session)
        savepoint = mock_session.begin_nested.return_value

        def failing(session):
            raise ValueError("inner")

        def work(session):
            with pytest.raises(ValueError):
                scope.transaction(failing)
            return scope.is_active

        assert scope.transaction(work) is True
        savepoint.rollback.assert_called_once()
        mock_session.rollback.assert_not_called()
        mock_session.commit.assert_called_once()
