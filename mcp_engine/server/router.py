import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from mcp_engine.config import Config, McpConfig
from mcp_engine.core.content import ContentError, RequestKind
from mcp_engine.core.context import RequestContext
from mcp_engine.core.jsonrpc import (
    ErrorCode,
    JsonRpcException,
    JsonRpcRequest,
    JsonRpcResponse,
    error_response,
    success_response,
)
from mcp_engine.core.loader import HandlerLoader, ImportLoader
from mcp_engine.core.validation import ArgumentsInvalid
from mcp_engine.server import methods
from mcp_engine.server.registry import Registry

logger = logging.getLogger(__name__)

Method = Callable[[RequestContext], Awaitable[Dict[str, Any]]]

METHODS: Dict[str, Method] = {
    "initialize": methods.initialize,
    "ping": methods.ping,
    "tools/list": methods.list_tools,
    "tools/call": methods.call_tool,
    "resources/list": methods.list_resources,
    "resources/templates/list": methods.list_resource_templates,
    "resources/read": methods.read_resource,
    "prompts/list": methods.list_prompts,
    "prompts/get": methods.get_prompt,
    "completion/complete": methods.complete,
}


def request_kind(method: str) -> RequestKind:
    if method.startswith("tools/"):
        return RequestKind.TOOL
    if method.startswith("resources/"):
        return RequestKind.RESOURCE
    if method.startswith("prompts/"):
        return RequestKind.PROMPT
    return RequestKind.SYSTEM


def _recover_id(message: Any) -> Optional[Any]:
    if not isinstance(message, dict):
        return None
    request_id = message.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        return None
    return request_id


class Server:
    """Routes decoded JSON-RPC messages to the wire methods.

    Transport independent: stdio and HTTP both hand raw message dicts to
    ``handle`` and write back whatever it returns (``None`` means no response).
    """

    def __init__(
        self,
        settings: Optional[McpConfig] = None,
        registry: Optional[Registry] = None,
        loader: Optional[HandlerLoader] = None,
    ):
        self.settings = settings if settings is not None else McpConfig()
        self.registry = registry if registry is not None else Registry()
        self.loader = loader if loader is not None else ImportLoader()

    @classmethod
    def from_config(cls, config: Config, registry: Optional[Registry] = None, loader=None) -> "Server":
        # Configured locators fill in keys the given registry does not define
        target = registry if registry is not None else Registry()
        for table, add, configured in (
            (target.tools, target.add_tool, config.registry.tools),
            (target.resources, target.add_resource, config.registry.resources),
            (target.prompts, target.add_prompt, config.registry.prompts),
        ):
            for key, locator in configured.items():
                if key not in table:
                    add(key, locator)
        return cls(config.mcp, target, loader)

    def create_context(self, request: JsonRpcRequest, session_id: Optional[str] = None) -> RequestContext:
        return RequestContext(
            name=self.settings.name,
            version=self.settings.version,
            instructions=self.settings.instructions,
            protocol_versions=self.settings.protocol_versions,
            capabilities=self.settings.capabilities,
            tools=self.registry.tools,
            resources=self.registry.resources,
            prompts=self.registry.prompts,
            default_page_size=self.settings.pagination.default_page_size,
            max_page_size=self.settings.pagination.max_page_size,
            request=request,
            kind=request_kind(request.method),
            loader=self.loader,
            session_id=session_id,
        )

    async def dispatch(self, request: JsonRpcRequest, session_id: Optional[str] = None) -> Optional[JsonRpcResponse]:
        method = METHODS.get(request.method)
        if method is None:
            if request.is_notification:
                logger.debug(f"Ignoring notification {request.method}")
                return None
            return error_response(request.id, ErrorCode.METHOD_NOT_FOUND, f"Method {request.method} not found")

        logger.debug(f"Dispatching {request.method} (id={request.id})")
        ctx = self.create_context(request, session_id)
        try:
            response = success_response(request.id, await method(ctx))
        except JsonRpcException as e:
            if e.request_id is None:
                e.request_id = request.id
            response = e.to_response()
        except ArgumentsInvalid as e:
            response = e.to_exception(request.id).to_response()
        except ContentError as e:
            logger.error(f"Content error in {request.method}: {e}")
            response = error_response(request.id, ErrorCode.INTERNAL_ERROR, str(e), {"code": e.code})
        except Exception as e:
            logger.exception(f"Internal error in {request.method}")
            response = error_response(request.id, ErrorCode.INTERNAL_ERROR, "Internal error", str(e))

        if request.is_notification:
            return None
        return response

    async def handle(self, message: Any, session_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Invalid request: {e.error_count()} validation error(s)")
            details = [error["msg"] for error in e.errors()]
            return error_response(_recover_id(message), ErrorCode.INVALID_REQUEST, "Invalid Request", details).to_dict()

        response = await self.dispatch(request, session_id)
        return response.to_dict() if response is not None else None
