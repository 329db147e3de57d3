from numbers import Real
from typing import Any, Tuple, Type, Union


def check_type(value: Any, expected_type: Union[Type, Tuple[Type, ...]], allow_none: bool = False) -> bool:
    """
    Checks if a value matches the expected type. Booleans are not accepted
    where a real number is expected.
    """
    if value is None:
        return allow_none

    if isinstance(value, bool) and not _accepts_bool(expected_type):
        return False

    return isinstance(value, expected_type)


def _accepts_bool(expected_type: Union[Type, Tuple[Type, ...]]) -> bool:
    types = expected_type if isinstance(expected_type, tuple) else (expected_type,)
    return any(t is bool for t in types)


def require_reals(name: str, *values: Any) -> None:
    """Raise TypeError unless every value is a real number."""
    for value in values:
        if not check_type(value, Real):
            raise TypeError(f"{name} expects real numbers, got {type(value).__name__}: {value!r}")
