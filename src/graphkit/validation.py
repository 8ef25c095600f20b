"""
Argument checks shared by the resource helpers.
"""

from typing import Any, Optional


def assert_string(value: Any, name: str) -> None:
    """Require a non-blank string."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


def assert_positive_integer(value: Optional[Any], name: str) -> None:
    """Require a positive integer when a value is given."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer")


def assert_non_empty_list(value: Any, name: str) -> None:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValueError(f"{name} must be a non-empty list")
