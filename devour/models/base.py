"""Base model shared by all manifest documents."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """A model read from (and written back to) a camelCase manifest document.

    Attributes are snake_case in Python; the wire format uses camelCase
    aliases, and either spelling is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Dump the model in its wire form.

        Returns:
            document (dict[str, Any]): The JSON-compatible document.
        """
        return self.model_dump(by_alias=True, mode="json")
