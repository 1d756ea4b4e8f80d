"""Sample handlers shared by the test suite."""
from typing import List, Optional

from pydantic import BaseModel, Field

from mcp_engine.core.annotations import Annotations, Role, ToolAnnotations
from mcp_engine.core.content import Blob
from mcp_engine.core.jsonrpc import ErrorCode
from mcp_engine.server.primitives import Prompt, Resource, Tool
from mcp_engine.server.registry import Registry


class EchoTool(Tool):
    name = "echo"
    title = "Echo"
    description = "Echo a message back"
    annotations = ToolAnnotations().read_only().idempotent()

    class Arguments(BaseModel):
        message: str

    async def handle(self, ctx):
        args = ctx.validate_using(self.Arguments)
        return ctx.response.text(args.message)


class SumTool(Tool):
    name = "sum"
    description = "Add numbers"

    class Arguments(BaseModel):
        numbers: List[float]

    def handle(self, ctx):
        args = ctx.validate_using(self.Arguments)
        return ctx.response.structured({"total": sum(args.numbers)})


class ExplodingTool(Tool):
    name = "explode"

    async def handle(self, ctx):
        raise RuntimeError("boom")


class RejectingTool(Tool):
    name = "reject"

    async def handle(self, ctx):
        return ctx.response.error("Not allowed")


class BlobTool(Tool):
    name = "blob"

    async def handle(self, ctx):
        return Blob(b"raw")


class LinkTool(Tool):
    name = "link"

    async def handle(self, ctx):
        return [ctx.response.text("See the readme"), ctx.response.link("file:///readme.md")]


class EmbedTool(Tool):
    name = "embed"

    async def handle(self, ctx):
        return ctx.response.embedded(f"file:///users/{ctx.args['user']}")


class ReadmeResource(Resource):
    uri = "file:///readme.md"
    name = "readme"
    title = "Readme"
    mime_type = "text/markdown"
    size = 12
    annotations = Annotations().with_audience(Role.USER).with_priority(0.5)

    def handle(self, ctx):
        return ctx.response.text("# Hello")


class LogoResource(Resource):
    uri = "file:///logo.png"
    name = "logo"
    mime_type = "image/png"

    async def handle(self, ctx):
        return ctx.response.blob(b"\x89PNG")


class MeResource(Resource):
    uri = "file:///users/me"
    name = "me"

    async def handle(self, ctx):
        return ctx.response.text("me")


class UserResource(Resource):
    uri = "file:///users/{id}"
    name = "user"
    mime_type = "application/json"

    async def handle(self, ctx):
        return ctx.response.text({"id": ctx.args["id"]})

    async def complete(self, ctx):
        prefix = ctx.args.get("id", "")
        return [user for user in ["41", "42", "420", "7"] if user.startswith(prefix)]


class ArgsResource(Resource):
    uri = "file:///args"
    name = "args"
    mime_type = "application/json"

    async def handle(self, ctx):
        return ctx.response.text(ctx.args)


class GoneResource(Resource):
    uri = "file:///gone"
    name = "gone"

    async def handle(self, ctx):
        return ctx.response.error("Gone for good", ErrorCode.RESOURCE_NOT_FOUND, {"uri": self.uri})


class GreetPrompt(Prompt):
    name = "greet"
    description = "Greets someone"

    class Arguments(BaseModel):
        name: str = Field(description="Who to greet")
        tone: Optional[str] = None

    async def handle(self, ctx):
        args = ctx.validate_using(self.Arguments)
        return [
            ctx.response.text(f"Say hello to {args.name}"),
            ctx.response.text("Hello!").as_assistant(),
        ]

    async def complete(self, ctx):
        prefix = ctx.args.get("name", "")
        return [name for name in ["Ada", "Alan", "Grace"] if name.startswith(prefix)]


class EmptyPrompt(Prompt):
    name = "empty"

    async def handle(self, ctx):
        return []


class ReadmePrompt(Prompt):
    name = "readme"

    async def handle(self, ctx):
        return ctx.response.embedded("file:///readme.md")


class CountryPrompt(Prompt):
    name = "country"

    async def handle(self, ctx):
        return ctx.response.text("Pick a country")

    async def complete(self, ctx):
        return [f"country-{i}" for i in range(150)]


def build_registry() -> Registry:
    registry = Registry()
    for tool in (EchoTool, SumTool, ExplodingTool, RejectingTool, BlobTool, LinkTool, EmbedTool):
        registry.add_tool(tool.name, tool)
    for resource in (ReadmeResource, LogoResource, MeResource, UserResource, GoneResource):
        registry.add_resource(resource.uri, resource)
    for prompt in (GreetPrompt, EmptyPrompt, ReadmePrompt, CountryPrompt):
        registry.add_prompt(prompt.name, prompt)
    return registry
