r"""Unit tests for package initialization and metadata."""

from __future__ import annotations

import arequeue


def test_package_version_is_string() -> None:
    """Test that __version__ is a non-empty string."""
    assert isinstance(arequeue.__version__, str)
    assert "." in arequeue.__version__


def test_all_exports_defined() -> None:
    """Test that all items in __all__ are defined in the module."""
    for name in arequeue.__all__:
        assert hasattr(arequeue, name), f"{name} is in __all__ but not defined in module"


def test_default_constants() -> None:
    """Test the default policy constants."""
    assert arequeue.DEFAULT_DELAY_TIME == 1.0
    assert arequeue.DEFAULT_RETRY_INTERVAL == 5.0
    assert arequeue.DEFAULT_MAX_RETRIES == 3
