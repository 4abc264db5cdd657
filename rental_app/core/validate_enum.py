from enum import Enum
from typing import Type, TypeVar

from .errors import InvalidInput

E = TypeVar("E", bound=Enum)


def validate_enum(
    value: str | Enum,
    enum_cls: Type[E],
    *,
    field: str,
    error_cls: Type[InvalidInput] = InvalidInput,
) -> E:
    if isinstance(value, enum_cls):
        return value

    # values only, case-sensitive; member names are not accepted
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            pass

    allowed = ", ".join(e.value for e in enum_cls)
    raise error_cls(f"Invalid {field}: {value}. Allowed values: {allowed}")
