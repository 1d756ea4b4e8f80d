from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Capability(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolsCapability(_Capability):
    list_changed: bool = Field(False, alias="listChanged")


class ResourcesCapability(_Capability):
    subscribe: bool = False
    list_changed: bool = Field(False, alias="listChanged")


class PromptsCapability(_Capability):
    list_changed: bool = Field(False, alias="listChanged")


class CompletionsCapability(_Capability):
    pass


class ServerCapabilities(_Capability):
    """Capabilities advertised in the initialize result, one struct per entity kind."""

    tools: Optional[ToolsCapability] = Field(default_factory=ToolsCapability)
    resources: Optional[ResourcesCapability] = Field(default_factory=ResourcesCapability)
    prompts: Optional[PromptsCapability] = Field(default_factory=PromptsCapability)
    completions: Optional[CompletionsCapability] = Field(default_factory=CompletionsCapability)
