"""Models for configuration fields that accept a compact string notation.

Both the DSN and the collection entry transform may be written either as a
structured object or as a single delimited string; `normalize` turns either
encoding into the canonical model.
"""

import logging
from collections.abc import Callable
from typing import Any, Literal, TypeVar
from urllib.parse import quote

from pydantic import Field, field_validator

from devour.errors import NotationError, SchemaError, StructuralError
from devour.models.base import DocumentModel
from devour.utils.conformance import conform

logger = logging.getLogger(__name__)

SSLMode = Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]


class DSNConfig(DocumentModel):
    """Connection settings for the target store."""

    host: str = Field(..., description="The database host.", min_length=1)
    port: int = Field(..., description="The database port.", ge=1, le=65535)
    username: str = Field(..., description="The database user.", repr=False)
    password: str = Field(..., description="The database password.", repr=False)
    db_name: str = Field(..., description="The database name.", min_length=1)
    ssl_mode: SSLMode = Field(default="disable", description="The ssl mode to use.")

    @field_validator("ssl_mode", mode="before")
    @classmethod
    def default_ssl_mode(cls, value):
        """Treat an explicit null the same as an absent ssl mode."""
        if value is None:
            return "disable"
        return value

    @property
    def url(self) -> str:
        """Return the postgres connection url for the dsn."""
        user = quote(self.username, safe="")
        password = quote(self.password, safe="")
        return (
            f"postgresql://{user}:{password}@{self.host}:{self.port}/{self.db_name}"
            f"?sslmode={self.ssl_mode}"
        )

    def __str__(self) -> str:
        """Redacted printable form."""
        return "{ xxxx xxxx xxxx xxxx }"


class TransformSpec(DocumentModel):
    """The placement of a graphical asset within a collection."""

    x_offset: float = Field(default=0.0, description="Horizontal offset.")
    y_offset: float = Field(default=0.0, description="Vertical offset.")
    z_index: int = Field(default=0, description="Draw order within the collection.")
    x_scale: float = Field(default=1.0, description="Horizontal scale factor.", gt=0)
    y_scale: float = Field(default=1.0, description="Vertical scale factor.", gt=0)
    rotation: float = Field(default=0.0, description="Rotation in degrees.")


DSN_FORMAT = "host port, username password, dbName[, sslMode]"


def parse_compact_dsn(text: str) -> dict[str, Any]:
    """Parse the compact dsn notation.

    e.g. "localhost 5432, admin secret, assetsdb, disable"

    Args:
        text (str): The compact notation.

    Returns:
        fields (dict[str, Any]): The dsn fields, keyed by their wire names.

    Raises:
        NotationError: If the notation does not have the expected shape.
    """
    groups = [group.split() for group in text.split(",")]
    if len(groups) not in (3, 4):
        msg = f"Compact DSN notation expects 3 or 4 comma separated groups ({DSN_FORMAT}), got {len(groups)}: {text!r}"
        raise NotationError(msg)
    arities = [2, 2, 1, 1][: len(groups)]
    for i, (group, arity) in enumerate(zip(groups, arities, strict=True)):
        if len(group) != arity:
            msg = f"Compact DSN notation group #{i} expects {arity} value(s), got {len(group)} ({DSN_FORMAT})"
            raise NotationError(msg)
    (host, port), (username, password), (db_name,) = groups[:3]
    try:
        port_number = int(port)
    except ValueError as e:
        msg = f"Compact DSN notation port must be an integer, got {port!r}"
        raise NotationError(msg) from e
    fields: dict[str, Any] = {
        "host": host,
        "port": port_number,
        "username": username,
        "password": password,
        "dbName": db_name,
    }
    if len(groups) == 4:
        fields["sslMode"] = groups[3][0]
    return fields


# keyword -> wire fields, in the order the clauses must appear
TRANSFORM_CLAUSES: dict[str, tuple[str, ...]] = {
    "offset": ("xOffset", "yOffset"),
    "z": ("zIndex",),
    "scale": ("xScale", "yScale"),
    "rotate": ("rotation",),
}


def parse_compact_transform(text: str) -> dict[str, Any]:
    """Parse the compact transform notation.

    The notation is a comma separated list of clauses, each a keyword
    followed by its values, e.g. "offset 10 20, z 2, scale 1.5 1.5, rotate 90".
    Every clause is optional but they must appear in that order.

    Args:
        text (str): The compact notation.

    Returns:
        fields (dict[str, Any]): The transform fields, keyed by their wire names.

    Raises:
        NotationError: If a clause is unknown, repeated, out of order or malformed.
    """
    keywords = list(TRANSFORM_CLAUSES)
    fields: dict[str, Any] = {}
    last_position = -1
    clauses = [clause.split() for clause in text.split(",")]
    if not any(clauses):
        msg = "Compact transform notation is empty"
        raise NotationError(msg)
    for clause in clauses:
        if not clause:
            msg = f"Compact transform notation has an empty clause: {text!r}"
            raise NotationError(msg)
        keyword, values = clause[0].lower(), clause[1:]
        if keyword not in TRANSFORM_CLAUSES:
            msg = f"Unknown transform clause {keyword!r}, expected one of {keywords}"
            raise NotationError(msg)
        position = keywords.index(keyword)
        if position <= last_position:
            msg = f"Transform clause {keyword!r} is repeated or out of order, clauses must follow {keywords}"
            raise NotationError(msg)
        last_position = position
        names = TRANSFORM_CLAUSES[keyword]
        if len(values) != len(names):
            msg = f"Transform clause {keyword!r} expects {len(names)} value(s), got {len(values)}"
            raise NotationError(msg)
        for name, value in zip(names, values, strict=True):
            try:
                number = float(value)
            except ValueError as e:
                msg = f"Transform clause {keyword!r} has a non-numeric value {value!r}"
                raise NotationError(msg) from e
            if name == "zIndex":
                # integral floats such as 2.0 are accepted, as in the object form
                if not number.is_integer():
                    msg = f"Transform clause {keyword!r} expects an integer, got {value!r}"
                    raise NotationError(msg)
                fields[name] = int(number)
            else:
                fields[name] = number
    return fields


M = TypeVar("M", DSNConfig, TransformSpec)

CompactParsers: dict[type[DocumentModel], Callable[[str], dict[str, Any]]] = {
    DSNConfig: parse_compact_dsn,
    TransformSpec: parse_compact_transform,
}


def normalize(value: Any, kind: type[M], context: str) -> M:
    """Normalize a compact string or a structured object into its canonical model.

    Args:
        value (Any): The raw field value.
        kind (type[M]): The canonical model, DSNConfig or TransformSpec.
        context (str): Locating prefix for error messages.

    Returns:
        canonical (M): The canonical, defaulted model.

    Raises:
        StructuralError: If the value is missing.
        NotationError: If a compact string is malformed.
        SchemaError: If the value has the wrong type or does not conform.
    """
    if isinstance(value, kind):
        return value
    if value is None:
        msg = f"{context}: missing value"
        raise StructuralError(msg)
    if isinstance(value, str):
        try:
            fields = CompactParsers[kind](value)
        except NotationError as e:
            raise e.with_context(context) from e
        logger.debug(f"{context}: expanded compact {kind.__name__} notation")
        return conform(fields, kind, context)
    if isinstance(value, dict):
        return conform(value, kind, context)
    msg = f"{context}: expected a compact notation string or an object, got {type(value).__name__}"
    raise SchemaError(msg)
