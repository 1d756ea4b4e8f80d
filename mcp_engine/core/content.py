"""Polymorphic content returned by tool, prompt and resource handlers.

A single value is rendered differently depending on the request it answers:
``to_tool`` builds a tool-call content block, ``to_prompt`` a prompt message body
and ``to_resource`` an entry of a ``resources/read`` result. Each variant lists
the request kinds it can be rendered for; every other conversion raises
``ContentError``.
"""
import base64
import json
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from mcp_engine.core.annotations import Role
from mcp_engine.core.jsonrpc import ErrorCode, JsonRpcException, RequestId
from mcp_engine.core.loader import call_handler
from mcp_engine.core.resolver import find_resource

Meta = Dict[str, Any]


class RequestKind(str, Enum):
    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"
    SYSTEM = "system"


ALL_TARGETS = frozenset({RequestKind.TOOL, RequestKind.PROMPT, RequestKind.RESOURCE})


class ContentError(Exception):
    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


def _resource_payload(resource: Any, **payload: Any) -> Dict[str, Any]:
    fields = {
        "uri": getattr(resource, "uri", None),
        "mimeType": getattr(resource, "mime_type", None),
        "size": getattr(resource, "size", None),
    }
    fields.update(payload)
    return {key: value for key, value in fields.items() if value is not None}


class Content:
    label = "Content"
    error_code = "CONTENT"
    targets: FrozenSet[RequestKind] = frozenset()

    def __init__(self, meta: Optional[Meta] = None):
        self.meta = meta
        self.role = Role.USER

    def with_meta(self, meta: Meta):
        self.meta = meta
        return self

    def as_assistant(self):
        self.role = Role.ASSISTANT
        return self

    def as_user(self):
        self.role = Role.USER
        return self

    @classmethod
    def supports(cls, kind: RequestKind) -> bool:
        return kind in cls.targets

    @classmethod
    def unsupported(cls, kind: RequestKind) -> ContentError:
        return ContentError(
            f"{cls.label} content may not be used in {kind.value}s.",
            f"E_{cls.error_code}_NOT_SUPPORTED",
        )

    def _merge_meta(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.meta is not None:
            payload["_meta"] = self.meta
        return payload

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        raise self.unsupported(RequestKind.TOOL)

    async def to_prompt(self, prompt: Any = None) -> Dict[str, Any]:
        raise self.unsupported(RequestKind.PROMPT)

    async def to_resource(self, resource: Any) -> Dict[str, Any]:
        raise self.unsupported(RequestKind.RESOURCE)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} role={self.role.value}>"


class Text(Content):
    label = "Text"
    error_code = "TEXT"
    targets = ALL_TARGETS

    def __init__(self, text: Any, meta: Optional[Meta] = None):
        super().__init__(meta)
        if isinstance(text, str):
            self.text = text
        else:
            self.text = json.dumps(text, separators=(",", ":"), ensure_ascii=False, default=str)

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        return self._merge_meta({"type": "text", "text": self.text})

    async def to_prompt(self, prompt: Any = None) -> Dict[str, Any]:
        return self._merge_meta({"type": "text", "text": self.text})

    async def to_resource(self, resource: Any) -> Dict[str, Any]:
        return self._merge_meta(_resource_payload(resource, text=self.text))


class Blob(Content):
    label = "Blob"
    error_code = "BLOB"
    targets = frozenset({RequestKind.RESOURCE})

    def __init__(self, data: Union[str, bytes], meta: Optional[Meta] = None):
        super().__init__(meta)
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self.blob = base64.b64encode(raw).decode("ascii")

    async def to_resource(self, resource: Any) -> Dict[str, Any]:
        return self._merge_meta(_resource_payload(resource, blob=self.blob))


class _Media(Content):
    media_type = ""
    targets = frozenset({RequestKind.TOOL, RequestKind.PROMPT})

    def __init__(self, data: str, mime_type: str, meta: Optional[Meta] = None):
        super().__init__(meta)
        self.data = data
        self.mime_type = mime_type

    def _payload(self) -> Dict[str, Any]:
        return self._merge_meta({"type": self.media_type, "data": self.data, "mimeType": self.mime_type})

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        return self._payload()

    async def to_prompt(self, prompt: Any = None) -> Dict[str, Any]:
        return self._payload()


class Image(_Media):
    label = "Image"
    error_code = "IMAGE"
    media_type = "image"


class Audio(_Media):
    label = "Audio"
    error_code = "AUDIO"
    media_type = "audio"


class Structured(Content):
    """Structured tool output; also rendered as JSON text for older clients."""

    label = "Structured"
    error_code = "STRUCTURED"
    targets = frozenset({RequestKind.TOOL})

    def __init__(self, data: Dict[str, Any], meta: Optional[Meta] = None):
        super().__init__(meta)
        self._data = data

    @property
    def structured_content(self) -> Dict[str, Any]:
        return self._data

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        return await Text(self._data, self.meta).to_tool(tool)


class ErrorContent(Text):
    """Failure message.

    In a tool call it is rendered as text and flags the result ``isError``; when
    returned from a resource handler it becomes the JSON-RPC error of the read.
    """

    label = "Error"
    error_code = "ERROR"
    targets = frozenset({RequestKind.TOOL, RequestKind.RESOURCE})

    def __init__(
        self,
        message: Any,
        code: int = ErrorCode.INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None,
        meta: Optional[Meta] = None,
    ):
        super().__init__(message, meta)
        self.code = code
        self.data = data

    async def to_prompt(self, prompt: Any = None) -> Dict[str, Any]:
        raise self.unsupported(RequestKind.PROMPT)

    async def to_resource(self, resource: Any) -> Dict[str, Any]:
        raise self.unsupported(RequestKind.RESOURCE)

    def to_exception(self, request_id: Optional[RequestId] = None) -> JsonRpcException:
        return JsonRpcException(self.text, int(self.code), request_id, self.data)


def _resource_not_found() -> ContentError:
    return ContentError("Resource not found.", "E_RESOURCE_NOT_FOUND")


class ResourceLink(Content):
    label = "Resource link"
    error_code = "RESOURCE_LINK"
    targets = frozenset({RequestKind.TOOL})

    def __init__(self, uri: str, meta: Optional[Meta] = None):
        super().__init__(meta)
        self.uri = uri
        self._resource = None

    async def preprocess(self, ctx) -> "ResourceLink":
        self._resource = await find_resource(self.uri, ctx.for_kind(RequestKind.RESOURCE, args={}))
        return self

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        if self._resource is None:
            raise _resource_not_found()

        resource = self._resource
        annotations = getattr(resource, "annotations", None)
        link = {
            "type": "resource_link",
            "name": getattr(resource, "name", None),
            "uri": self.uri,
            "mimeType": getattr(resource, "mime_type", None),
            "title": getattr(resource, "title", None),
            "description": getattr(resource, "description", None),
            "size": getattr(resource, "size", None),
            "annotations": annotations.to_json() if annotations is not None else None,
        }
        return self._merge_meta({k: v for k, v in link.items() if v is not None})


class EmbeddedResource(Content):
    label = "Embedded resource"
    error_code = "EMBEDDED_RESOURCE"
    targets = frozenset({RequestKind.TOOL, RequestKind.PROMPT})

    def __init__(self, uri: str, meta: Optional[Meta] = None):
        super().__init__(meta)
        self.uri = uri
        self._resource = None
        self._ctx = None

    async def preprocess(self, ctx) -> "EmbeddedResource":
        # Resource handlers see their own URI variables, never the caller's arguments
        self._ctx = ctx.for_kind(RequestKind.RESOURCE, args={})
        self._resource = await find_resource(self.uri, self._ctx)
        return self

    async def _embed(self) -> Dict[str, Any]:
        if self._resource is None:
            raise _resource_not_found()

        content = await call_handler(self._resource.handle, self._ctx)
        return self._merge_meta({
            "type": "resource",
            "resource": await content.to_resource(self._resource),
        })

    async def to_tool(self, tool: Any = None) -> Dict[str, Any]:
        return await self._embed()

    async def to_prompt(self, prompt: Any = None) -> Dict[str, Any]:
        return await self._embed()
