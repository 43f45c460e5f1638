"""
Unit Tests for Core Exceptions

Tests the fragment cache exception hierarchy and helpers.
"""

import pytest

from fragment_cache.core.exceptions import (
    BackendError,
    BackendUnavailableError,
    FragmentCacheError,
    InvalidKeyError,
    InvalidOptionsError,
    ScopeUnavailableError,
    ValidationError,
)


@pytest.mark.unit
class TestFragmentCacheError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = FragmentCacheError("Test message")

        assert str(error) == "Test message"
        assert error.details == {}
        assert error.scope_id is None

    def test_details_are_copied(self):
        details = {"key": "views/a"}
        error = FragmentCacheError("Test", details=details)
        error.with_context(attempt=2)

        assert details == {"key": "views/a"}
        assert error.details == {"key": "views/a", "attempt": 2}

    def test_to_dict(self):
        error = BackendError("GET failed", scope_id="req-1", details={"key": "views/a"})

        assert error.to_dict() == {
            "error_type": "BackendError",
            "message": "GET failed",
            "scope_id": "req-1",
            "details": {"key": "views/a"},
        }

    def test_from_exception(self):
        original = TimeoutError("timed out")

        error = BackendUnavailableError.from_exception(original, key="views/a")

        assert isinstance(error, BackendUnavailableError)
        assert error.message == "timed out"
        assert error.details["original_error"] == "TimeoutError"
        assert error.details["key"] == "views/a"

    def test_repr(self):
        error = InvalidKeyError("blank", scope_id="req-1")

        assert repr(error) == "InvalidKeyError(message='blank', scope_id='req-1')"


@pytest.mark.unit
class TestHierarchy:
    """Test exception inheritance."""

    @pytest.mark.parametrize(
        "error_cls",
        [BackendError, BackendUnavailableError, ScopeUnavailableError, InvalidKeyError, InvalidOptionsError],
    )
    def test_all_derive_from_base(self, error_cls):
        assert issubclass(error_cls, FragmentCacheError)

    def test_unavailable_is_a_backend_error(self):
        assert issubclass(BackendUnavailableError, BackendError)

    def test_input_errors_are_validation_errors(self):
        assert issubclass(InvalidKeyError, ValidationError)
        assert issubclass(InvalidOptionsError, ValidationError)
        assert not issubclass(InvalidKeyError, BackendError)
