import pytest

from mcp_engine.core.loader import HandlerLoadError, ImportLoader, call_handler
from mcp_engine.server.primitives import Tool


class TestImportLoader:
    def test_colon_locator(self):
        assert ImportLoader().load("mcp_engine.server.primitives:Tool") is Tool

    def test_dotted_locator(self):
        assert ImportLoader().load("mcp_engine.server.primitives.Tool") is Tool

    def test_test_handlers_are_importable(self):
        from handlers import EchoTool

        assert ImportLoader().load("handlers:EchoTool") is EchoTool

    def test_callables_pass_through(self):
        factory = lambda: "tool"
        assert ImportLoader().load(factory) is factory

    def test_results_are_cached(self):
        loader = ImportLoader()
        loader.load("mcp_engine.server.primitives:Prompt")
        assert "mcp_engine.server.primitives:Prompt" in loader._cache

    @pytest.mark.parametrize("locator", [
        "no_such_module_anywhere:Thing",
        "mcp_engine.server.primitives:Missing",
        "mcp_engine.server.methods:MAX_COMPLETION_VALUES",
        "NoDots",
        "",
        42,
    ])
    def test_failures(self, locator):
        with pytest.raises(HandlerLoadError):
            ImportLoader().load(locator)


class TestCallHandler:
    @pytest.mark.asyncio
    async def test_sync_function(self):
        assert await call_handler(lambda x: x * 2, 4) == 8

    @pytest.mark.asyncio
    async def test_coroutine_function(self):
        async def double(x):
            return x * 2

        assert await call_handler(double, 4) == 8
