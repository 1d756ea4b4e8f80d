from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class _Annotations(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def _replace(self, **changes: Any):
        # Re-validated so builder steps enforce the same bounds as the constructor
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Annotations(_Annotations):
    """Client hints attached to resources (and resource templates)."""

    audience: Optional[List[Role]] = None
    priority: Optional[float] = Field(None, ge=0.0, le=1.0)
    last_modified: Optional[str] = Field(None, alias="lastModified")

    @field_validator("audience", mode="before")
    @classmethod
    def _audience_as_list(cls, value: Any) -> Any:
        if isinstance(value, (str, Role)):
            return [value]
        return value

    def with_audience(self, audience: Union[Role, List[Role]]) -> "Annotations":
        return self._replace(audience=audience)

    def with_priority(self, priority: float) -> "Annotations":
        return self._replace(priority=priority)

    def with_last_modified(self, last_modified: str) -> "Annotations":
        return self._replace(last_modified=last_modified)


class ToolAnnotations(_Annotations):
    title: Optional[str] = None
    read_only_hint: Optional[bool] = Field(None, alias="readOnlyHint")
    destructive_hint: Optional[bool] = Field(None, alias="destructiveHint")
    idempotent_hint: Optional[bool] = Field(None, alias="idempotentHint")
    open_world_hint: Optional[bool] = Field(None, alias="openWorldHint")

    def read_only(self, value: bool = True) -> "ToolAnnotations":
        return self._replace(read_only_hint=value)

    def destructive(self, value: bool = True) -> "ToolAnnotations":
        return self._replace(destructive_hint=value)

    def idempotent(self, value: bool = True) -> "ToolAnnotations":
        return self._replace(idempotent_hint=value)

    def open_world(self, value: bool = True) -> "ToolAnnotations":
        return self._replace(open_world_hint=value)
