import copy
import inspect
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from mcp_engine.core.capabilities import ServerCapabilities
from mcp_engine.core.content import (
    Audio,
    Blob,
    Content,
    EmbeddedResource,
    ErrorContent,
    Image,
    RequestKind,
    ResourceLink,
    Structured,
    Text,
)
from mcp_engine.core.jsonrpc import ErrorCode, JsonRpcRequest, RequestId
from mcp_engine.core.loader import HandlerLoader, ImportLoader
from mcp_engine.core.uri_template import UriTemplate
from mcp_engine.core.validation import ModelValidator, Validator


class ResponseBuilder:
    """Creates content for one request kind, refusing variants it cannot render."""

    def __init__(self, kind: RequestKind):
        self.kind = kind

    def _checked(self, content: Content) -> Content:
        if not content.supports(self.kind):
            raise content.unsupported(self.kind)
        return content

    def text(self, text: Any, meta: Optional[Dict[str, Any]] = None) -> Text:
        return self._checked(Text(text, meta))

    def blob(self, data: Union[str, bytes], meta: Optional[Dict[str, Any]] = None) -> Blob:
        return self._checked(Blob(data, meta))

    def image(self, data: str, mime_type: str, meta: Optional[Dict[str, Any]] = None) -> Image:
        return self._checked(Image(data, mime_type, meta))

    def audio(self, data: str, mime_type: str, meta: Optional[Dict[str, Any]] = None) -> Audio:
        return self._checked(Audio(data, mime_type, meta))

    def structured(self, data: Dict[str, Any], meta: Optional[Dict[str, Any]] = None) -> Structured:
        return self._checked(Structured(data, meta))

    def error(
        self,
        message: Any,
        code: int = ErrorCode.INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> ErrorContent:
        return self._checked(ErrorContent(message, code, data, meta))

    def link(self, uri: str, meta: Optional[Dict[str, Any]] = None) -> ResourceLink:
        return self._checked(ResourceLink(uri, meta))

    def embedded(self, uri: str, meta: Optional[Dict[str, Any]] = None) -> EmbeddedResource:
        return self._checked(EmbeddedResource(uri, meta))


class RequestContext:
    """Everything a handler can see while serving one request.

    Built fresh for every dispatched message; ``args`` carries the call arguments,
    prompt arguments or the variables extracted from a resource URI.
    """

    def __init__(
        self,
        *,
        name: str,
        version: str,
        protocol_versions: List[str],
        capabilities: ServerCapabilities,
        tools: Mapping[str, Any],
        resources: Mapping[str, Any],
        prompts: Mapping[str, Any],
        request: Optional[JsonRpcRequest] = None,
        kind: RequestKind = RequestKind.SYSTEM,
        instructions: Optional[str] = None,
        default_page_size: int = 15,
        max_page_size: int = 50,
        loader: Optional[HandlerLoader] = None,
        session_id: Optional[str] = None,
        args: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.version = version
        self.instructions = instructions
        self.protocol_versions = list(protocol_versions)
        self.capabilities = capabilities
        self.tools = tools
        self.resources = resources
        self.prompts = prompts
        self.request = request
        self.kind = kind
        self.response = ResponseBuilder(kind)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.loader = loader or ImportLoader()
        self.session_id = session_id
        self.args: Dict[str, Any] = dict(args or {})

    @property
    def request_id(self) -> Optional[RequestId]:
        return self.request.id if self.request is not None else None

    @property
    def server_info(self) -> Dict[str, str]:
        return {"name": self.name, "version": self.version}

    def for_kind(self, kind: RequestKind, args: Optional[Dict[str, Any]] = None) -> "RequestContext":
        """Shallow copy bound to another request kind.

        The copy gets its own ``args``: the given mapping, or a copy of the current one.
        """
        clone = copy.copy(self)
        clone.kind = kind
        clone.response = ResponseBuilder(kind)
        clone.args = dict(args) if args is not None else dict(self.args)
        return clone

    def get_per_page(self, requested: Optional[int] = None) -> int:
        return max(1, min(requested or self.default_page_size, self.max_page_size))

    def get_resources(self) -> Dict[str, Any]:
        return {key: entry for key, entry in self.resources.items() if not UriTemplate.is_template(key)}

    def get_resource_templates(self) -> Dict[str, Any]:
        return {key: entry for key, entry in self.resources.items() if UriTemplate.is_template(key)}

    def validate_using(self, validator: Union[Validator, type], data: Optional[Dict[str, Any]] = None) -> Any:
        if inspect.isclass(validator) and issubclass(validator, BaseModel):
            validator = ModelValidator(validator)
        return validator.validate(self.args if data is None else data)
