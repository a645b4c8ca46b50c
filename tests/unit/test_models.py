"""
Unit tests for model resolution helpers.
"""

import pytest

from toolkit.exceptions import UnknownModelError
from toolkit.models.base import column_keys, model_identifier, primary_key_columns, resolve_model
from tests.fixtures.models import Memberships, NotAModel, Users


class TestResolveModel:
    """Tests for resolve_model."""

    def test_mapped_class(self):
        assert resolve_model(Users) is Users

    def test_dotted_path(self):
        assert resolve_model("tests.fixtures.models.Users") is Users

    def test_registered_name(self):
        assert resolve_model("Memberships") is Memberships

    def test_unknown_name(self):
        with pytest.raises(UnknownModelError):
            resolve_model("Nobody")

    def test_unknown_module(self):
        with pytest.raises(UnknownModelError):
            resolve_model("tests.fixtures.missing.Users")

    def test_unknown_attribute(self):
        with pytest.raises(UnknownModelError):
            resolve_model("tests.fixtures.models.Nobody")

    def test_unmapped_class(self):
        with pytest.raises(UnknownModelError):
            resolve_model(NotAModel)

    def test_unmapped_dotted_path(self):
        with pytest.raises(UnknownModelError):
            resolve_model("tests.fixtures.models.NotAModel")


def test_model_identifier_for_class():
    assert model_identifier(Users) == "tests.fixtures.models.Users"


def test_model_identifier_for_string():
    assert model_identifier("Users") == "Users"


def test_column_keys():
    assert set(column_keys(Users)) == {
        "id", "email", "display_name", "status", "type", "is_active", "created_at"
    }


def test_primary_key_columns():
    assert [c.name for c in primary_key_columns(Memberships)] == ["user_id", "group_id"]
