"""Structural type conformance checks backed by pydantic."""

from functools import lru_cache
from typing import Any, TypeVar, cast

from pydantic import TypeAdapter, ValidationError

from devour.errors import SchemaError

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def describe_mismatch(err: ValidationError) -> str:
    """Flatten a pydantic validation error into a single readable line.

    Args:
        err (ValidationError): The error raised by pydantic.

    Returns:
        description (str): e.g. "single.id: Input should be a valid integer"
    """
    parts = []
    for detail in err.errors(include_url=False):
        loc = ".".join(str(p) for p in detail["loc"]) or "<root>"
        parts.append(f"{loc}: {detail['msg']}")
    return "; ".join(parts)


def conform(value: Any, schema: type[T], context: str) -> T:
    """Validate a value against a schema and return the validated value.

    Args:
        value (Any): The raw value, usually a parsed document fragment.
        schema (type[T]): Any pydantic-compatible type.
        context (str): Locating prefix for the error message.

    Returns:
        validated (T): The value converted to the schema's type.

    Raises:
        SchemaError: If the value does not conform.
    """
    try:
        return cast(T, _adapter(schema).validate_python(value))
    except ValidationError as e:
        msg = f"{context}: {describe_mismatch(e)}"
        raise SchemaError(msg) from e
