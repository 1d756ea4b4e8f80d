"""Base classes for tool, resource and prompt handlers.

Subclasses set the metadata attributes, optionally declare an ``Arguments``
pydantic model, and implement ``handle(ctx)``. Handlers may be sync or async;
``handle`` returns one content or a list of them (resources: exactly one).
"""
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from mcp_engine.core.annotations import Annotations, ToolAnnotations
from mcp_engine.core.uri_template import UriTemplate

EMPTY_SCHEMA = {"type": "object", "properties": {}}


def _schema(model: Optional[Type[BaseModel]]) -> Dict[str, Any]:
    if model is None:
        return dict(EMPTY_SCHEMA)
    schema = model.model_json_schema()
    schema.pop("title", None)
    return schema


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class Tool:
    name: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    Arguments: Optional[Type[BaseModel]] = None
    Output: Optional[Type[BaseModel]] = None
    annotations: Optional[ToolAnnotations] = None
    meta: Optional[Dict[str, Any]] = None

    def input_schema(self) -> Dict[str, Any]:
        return _schema(self.Arguments)

    def output_schema(self) -> Optional[Dict[str, Any]]:
        return _schema(self.Output) if self.Output is not None else None

    async def handle(self, ctx):
        raise NotImplementedError(f"Tool {self.name} does not implement handle()")

    def to_json(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "outputSchema": self.output_schema(),
            "annotations": self.annotations.to_json() if self.annotations else None,
            "_meta": self.meta,
        })


class Resource:
    uri: str = ""
    name: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = "text/plain"
    size: Optional[int] = None
    annotations: Optional[Annotations] = None
    meta: Optional[Dict[str, Any]] = None

    @property
    def is_template(self) -> bool:
        return UriTemplate.is_template(self.uri)

    async def handle(self, ctx):
        raise NotImplementedError(f"Resource {self.uri} does not implement handle()")

    async def complete(self, ctx) -> Any:
        return []

    def to_json(self) -> Dict[str, Any]:
        data = {
            "name": self.name or self.uri,
            "title": self.title,
            "description": self.description,
            "mimeType": self.mime_type,
            "annotations": self.annotations.to_json() if self.annotations else None,
            "_meta": self.meta,
        }
        if self.is_template:
            data = {"uriTemplate": self.uri, **data}
        else:
            data = {"uri": self.uri, **data, "size": self.size}
        return _compact(data)


class Prompt:
    name: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    Arguments: Optional[Type[BaseModel]] = None
    meta: Optional[Dict[str, Any]] = None

    def arguments(self) -> List[Dict[str, Any]]:
        schema = _schema(self.Arguments)
        required = set(schema.get("required", []))
        arguments = []
        for name, prop in schema.get("properties", {}).items():
            arguments.append(_compact({
                "name": name,
                "title": prop.get("title"),
                "description": prop.get("description"),
                "required": name in required,
            }))
        return arguments

    async def handle(self, ctx):
        raise NotImplementedError(f"Prompt {self.name} does not implement handle()")

    async def complete(self, ctx) -> Any:
        return []

    def to_json(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "arguments": self.arguments(),
            "_meta": self.meta,
        })
