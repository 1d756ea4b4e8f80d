"""Wire methods. Each takes the request context and returns the ``result`` object."""
import logging
from typing import Any, Dict, List, Mapping

from mcp_engine.core.content import Content, EmbeddedResource, ErrorContent, ResourceLink, Structured
from mcp_engine.core.context import RequestContext
from mcp_engine.core.jsonrpc import ErrorCode, JsonRpcException
from mcp_engine.core.loader import call_handler
from mcp_engine.core.pagination import CursorPaginator
from mcp_engine.core.resolver import find_resource, instantiate
from mcp_engine.core.validation import ArgumentsInvalid

logger = logging.getLogger(__name__)

MAX_COMPLETION_VALUES = 100


def _invalid_params(ctx: RequestContext, message: str) -> JsonRpcException:
    return JsonRpcException(message, ErrorCode.INVALID_PARAMS, ctx.request_id)


def _internal_error(ctx: RequestContext, message: str) -> JsonRpcException:
    return JsonRpcException(message, ErrorCode.INTERNAL_ERROR, ctx.request_id)


def _as_contents(ctx: RequestContext, value: Any, owner: str) -> List[Content]:
    if value is None:
        contents = []
    elif isinstance(value, (list, tuple)):
        contents = list(value)
    else:
        contents = [value]

    for content in contents:
        if not isinstance(content, Content):
            raise _internal_error(ctx, f"Invalid content returned from {owner}.")
    return contents


def _arguments(ctx: RequestContext, value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _invalid_params(ctx, "The arguments must be an object.")
    return dict(value)


async def initialize(ctx: RequestContext) -> Dict[str, Any]:
    requested = ctx.request.param("protocolVersion")
    if requested is not None and requested not in ctx.protocol_versions:
        raise JsonRpcException(
            f"Unsupported protocol version {requested}",
            ErrorCode.INVALID_PARAMS,
            ctx.request_id,
            {"supported": ctx.protocol_versions, "requested": requested},
        )

    result = {
        "protocolVersion": requested or ctx.protocol_versions[0],
        "capabilities": ctx.capabilities.to_json(),
        "serverInfo": ctx.server_info,
    }
    if ctx.instructions is not None:
        result["instructions"] = ctx.instructions
    return result


async def ping(ctx: RequestContext) -> Dict[str, Any]:
    return {}


def _list(ctx: RequestContext, table: Mapping[str, Any], kind: str, key: str) -> Dict[str, Any]:
    page = CursorPaginator(list(table.items()), ctx.get_per_page(), ctx.request.param("cursor")).paginate(key)

    definitions = []
    for name, entry in page[key]:
        if entry.definition is not None:
            definitions.append(entry.definition)
        else:
            definitions.append(instantiate(ctx, entry.locator, kind, name).to_json())
    page[key] = definitions
    return page


async def list_tools(ctx: RequestContext) -> Dict[str, Any]:
    return _list(ctx, ctx.tools, "tool", "tools")


async def list_resources(ctx: RequestContext) -> Dict[str, Any]:
    return _list(ctx, ctx.get_resources(), "resource", "resources")


async def list_resource_templates(ctx: RequestContext) -> Dict[str, Any]:
    return _list(ctx, ctx.get_resource_templates(), "resource", "resourceTemplates")


async def list_prompts(ctx: RequestContext) -> Dict[str, Any]:
    return _list(ctx, ctx.prompts, "prompt", "prompts")


async def call_tool(ctx: RequestContext) -> Dict[str, Any]:
    name = ctx.request.param("name")
    if not name:
        raise _invalid_params(ctx, "The tool name is required.")

    entry = ctx.tools.get(name)
    if entry is None:
        raise _invalid_params(ctx, f"The tool {name} was not found.")

    tool = instantiate(ctx, entry.locator, "tool", name)
    logger.debug(f"Calling tool {name}")
    ctx.args = _arguments(ctx, ctx.request.param("arguments"))

    try:
        output = await call_handler(tool.handle, ctx)
    except ArgumentsInvalid as e:
        output = [
            ErrorContent(error.message, ErrorCode.INVALID_PARAMS, {"field": error.field})
            for error in e.errors
        ]

    result: Dict[str, Any] = {"content": []}
    for content in _as_contents(ctx, output, f"tool {name}"):
        if isinstance(content, (ResourceLink, EmbeddedResource)):
            await content.preprocess(ctx)
        if isinstance(content, Structured):
            result["structuredContent"] = content.structured_content
        elif isinstance(content, ErrorContent):
            result["isError"] = True
        result["content"].append(await content.to_tool(tool))
    return result


async def read_resource(ctx: RequestContext) -> Dict[str, Any]:
    uri = ctx.request.param("uri")
    if not uri:
        raise _invalid_params(ctx, "The resource URI is required.")

    resource = await find_resource(uri, ctx)
    contents = _as_contents(ctx, await call_handler(resource.handle, ctx), f"resource {uri}")
    if len(contents) != 1:
        raise _internal_error(ctx, f"The resource {uri} must return exactly one content.")

    content = contents[0]
    if isinstance(content, ErrorContent):
        raise content.to_exception(ctx.request_id)
    return {"contents": [await content.to_resource(resource)]}


async def get_prompt(ctx: RequestContext) -> Dict[str, Any]:
    name = ctx.request.param("name")
    if not name:
        raise _invalid_params(ctx, "The prompt name is required.")

    entry = ctx.prompts.get(name)
    if entry is None:
        raise _invalid_params(ctx, f"The prompt {name} was not found.")

    prompt = instantiate(ctx, entry.locator, "prompt", name)
    ctx.args = _arguments(ctx, ctx.request.param("arguments"))

    contents = _as_contents(ctx, await call_handler(prompt.handle, ctx), f"prompt {name}")
    if not contents:
        raise _internal_error(ctx, f"The prompt {name} returned no content.")

    messages = []
    for content in contents:
        if isinstance(content, EmbeddedResource):
            await content.preprocess(ctx)
        messages.append({"role": content.role.value, "content": await content.to_prompt(prompt)})

    result: Dict[str, Any] = {"messages": messages}
    if prompt.description is not None:
        result = {"description": prompt.description, **result}
    return result


def _completion(output: Any) -> Dict[str, Any]:
    if isinstance(output, dict):
        values = list(output.get("values", []))
        total = output.get("total", len(values))
        has_more = output.get("hasMore")
    else:
        values = list(output or [])
        total = len(values)
        has_more = None

    shown = values[:MAX_COMPLETION_VALUES]
    if has_more is None:
        has_more = total > len(shown)
    return {"values": shown, "total": total, "hasMore": has_more}


async def complete(ctx: RequestContext) -> Dict[str, Any]:
    argument = ctx.request.param("argument") or {}
    if not isinstance(argument, dict) or not argument.get("name") or not argument.get("value"):
        raise _invalid_params(ctx, "The argument name and value are required.")

    ref = ctx.request.param("ref")
    if not isinstance(ref, dict):
        ref = {}
    key, entry, kind = None, None, None
    if ref.get("type") == "ref/prompt":
        key, kind = ref.get("name"), "prompt"
        entry = ctx.prompts.get(key)
    elif ref.get("type") == "ref/resource":
        key, kind = ref.get("uri"), "resource"
        entry = ctx.resources.get(key)

    if entry is None:
        raise _invalid_params(ctx, f"{key} was not found.")

    entity = instantiate(ctx, entry.locator, kind, key)

    context = ctx.request.param("context")
    if not isinstance(context, dict):
        context = {}
    args = dict(context.get("arguments") or {})
    args[argument["name"]] = argument["value"]
    ctx.args = args

    return {"completion": _completion(await call_handler(entity.complete, ctx))}
