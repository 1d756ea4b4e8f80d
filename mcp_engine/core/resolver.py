import logging
from typing import Any, Mapping, Optional

from mcp_engine.core.jsonrpc import ErrorCode, JsonRpcException
from mcp_engine.core.loader import HandlerLoadError
from mcp_engine.core.uri_template import UriTemplate, compile_template

logger = logging.getLogger(__name__)


def find_resource_pattern(uri: str, resources: Mapping[str, Any], ctx=None) -> Optional[str]:
    """Return the registry key serving ``uri``.

    Literal keys win over templates. Templates are tried in registration order and
    the first match's variables replace ``ctx.args``.
    """
    if uri in resources:
        return uri

    for key in resources:
        if not UriTemplate.is_template(key):
            continue
        variables = compile_template(key).match(uri)
        if variables is not None:
            if ctx is not None:
                ctx.args = variables
            return key
    return None


def instantiate(ctx, locator: Any, kind: str, name: str) -> Any:
    """Load a handler factory through the context's loader and build an instance."""
    try:
        factory = ctx.loader.load(locator)
    except HandlerLoadError as e:
        logger.error(f"Failed to import {kind} {name}: {e.reason}")
        raise JsonRpcException(
            f"Failed to import {kind} {name}: {e.reason}",
            ErrorCode.INTERNAL_ERROR,
            ctx.request_id,
        ) from e
    return factory()


async def find_resource(uri: str, ctx) -> Any:
    key = find_resource_pattern(uri, ctx.resources, ctx)
    if key is None:
        raise JsonRpcException(
            f"Resource {uri} not found",
            ErrorCode.RESOURCE_NOT_FOUND,
            ctx.request_id,
            {"uri": uri},
        )

    resource = instantiate(ctx, ctx.resources[key].locator, "resource", key)
    resource.uri = uri
    return resource
