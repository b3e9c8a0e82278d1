"""Base pydantic model for payloads exchanged with the backend."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ServerModel(BaseModel):
    """Snake_case model that reads and writes the backend's camelCase JSON.

    Unknown fields are ignored so newer servers do not break older clients.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        """Serialize to camelCase JSON-ready dict, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
