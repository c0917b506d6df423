"""Error types for manifest verification.

Every verification step fails fast by raising one of these; messages always
name the asset index, entry index, sub-file path or declaration at fault.
"""

from typing import TypeVar

E = TypeVar("E", bound="ManifestError")


class ManifestError(Exception):
    """Base exception for all manifest verification errors."""

    def with_context(self: E, prefix: str) -> E:
        """Return a copy of the error with a locating prefix prepended.

        Args:
            prefix (str): The locating context, e.g. a sub-file path.

        Returns:
            err (ManifestError): A new error of the same class.
        """
        return type(self)(f"{prefix}: {self}")


class StructuralError(ManifestError):
    """A required field is missing or null, or a discriminant is unknown."""

    pass


class SchemaError(ManifestError):
    """A value is present but does not conform to its schema."""

    pass


class NotationError(ManifestError):
    """A compact shorthand string could not be parsed."""

    pass


class RangeError(ManifestError):
    """Identifier ranges are malformed or overlap, or an identifier is misassigned."""

    pass


class RetrievalError(ManifestError):
    """A manifest could not be fetched, read or parsed."""

    pass


class UploadError(Exception):
    """The upload pipeline could not be loaded or failed."""

    pass
