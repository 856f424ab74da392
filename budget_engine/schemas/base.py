"""Base schema classes shared by persisted records."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for records owned by the budget store.

    Records travel camelCase (``recurringId``, ``isActive``) and are
    accepted under either the alias or the Python field name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
