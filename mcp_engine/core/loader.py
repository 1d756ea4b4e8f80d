import importlib
import inspect
import logging
from typing import Any, Callable, Dict, Protocol, Union

logger = logging.getLogger(__name__)

Locator = Union[str, Callable[..., Any]]


class HandlerLoadError(Exception):
    def __init__(self, locator: Any, reason: str):
        super().__init__(f"Cannot load handler {locator!r}: {reason}")
        self.locator = locator
        self.reason = reason


class HandlerLoader(Protocol):
    def load(self, locator: Locator) -> Callable[..., Any]:
        ...


class ImportLoader:
    """Resolves ``"package.module:Attr"`` or ``"package.module.Attr"`` locators.

    Callables (classes or factories) are returned unchanged, so registries built
    in code and registries read from configuration share one loader.
    """

    def __init__(self):
        self._cache: Dict[str, Callable[..., Any]] = {}

    def load(self, locator: Locator) -> Callable[..., Any]:
        if callable(locator):
            return locator
        if not isinstance(locator, str) or not locator:
            raise HandlerLoadError(locator, "locator must be a callable or an import path")

        cached = self._cache.get(locator)
        if cached is not None:
            return cached

        if ":" in locator:
            module_name, _, attr = locator.partition(":")
        else:
            module_name, _, attr = locator.rpartition(".")
        if not module_name or not attr:
            raise HandlerLoadError(locator, "expected 'module:Attr' or 'module.Attr'")

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise HandlerLoadError(locator, str(e)) from e

        target: Any = module
        for part in attr.split("."):
            try:
                target = getattr(target, part)
            except AttributeError as e:
                raise HandlerLoadError(locator, f"{module_name} has no attribute {attr}") from e

        if not callable(target):
            raise HandlerLoadError(locator, "resolved object is not callable")

        logger.debug(f"Loaded handler {locator}")
        self._cache[locator] = target
        return target


async def call_handler(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    # Handlers may be sync or async
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    return func(*args, **kwargs)
