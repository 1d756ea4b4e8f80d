import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """A registered handler: where to load it from and, optionally, its cached listing."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    locator: Any
    definition: Optional[Dict[str, Any]] = None


class Registry:
    """Ordered name/URI to handler maps for tools, resources and prompts."""

    def __init__(
        self,
        tools: Optional[Dict[str, Any]] = None,
        resources: Optional[Dict[str, Any]] = None,
        prompts: Optional[Dict[str, Any]] = None,
    ):
        self.tools: Dict[str, RegistryEntry] = {}
        self.resources: Dict[str, RegistryEntry] = {}
        self.prompts: Dict[str, RegistryEntry] = {}

        for name, locator in (tools or {}).items():
            self.add_tool(name, locator)
        for uri, locator in (resources or {}).items():
            self.add_resource(uri, locator)
        for name, locator in (prompts or {}).items():
            self.add_prompt(name, locator)

    @staticmethod
    def _add(table: Dict[str, RegistryEntry], kind: str, key: str, locator: Any, definition=None):
        if not key:
            raise ValueError(f"A {kind} must be registered under a non-empty key")
        if isinstance(locator, RegistryEntry):
            entry = locator
        else:
            entry = RegistryEntry(locator=locator, definition=definition)
        if key in table:
            logger.warning(f"Replacing {kind} {key}")
        table[key] = entry
        return entry

    def add_tool(self, name: str, locator: Any, definition: Optional[Dict[str, Any]] = None) -> RegistryEntry:
        return self._add(self.tools, "tool", name, locator, definition)

    def add_resource(self, uri: str, locator: Any, definition: Optional[Dict[str, Any]] = None) -> RegistryEntry:
        return self._add(self.resources, "resource", uri, locator, definition)

    def add_prompt(self, name: str, locator: Any, definition: Optional[Dict[str, Any]] = None) -> RegistryEntry:
        return self._add(self.prompts, "prompt", name, locator, definition)

    def tool(self, name: Optional[str] = None) -> Callable:
        def decorator(cls):
            self.add_tool(name or cls.name, cls)
            return cls
        return decorator

    def resource(self, uri: Optional[str] = None) -> Callable:
        def decorator(cls):
            self.add_resource(uri or cls.uri, cls)
            return cls
        return decorator

    def prompt(self, name: Optional[str] = None) -> Callable:
        def decorator(cls):
            self.add_prompt(name or cls.name, cls)
            return cls
        return decorator

    def merge(self, other: "Registry") -> "Registry":
        merged = Registry()
        for source in (self, other):
            merged.tools.update(source.tools)
            merged.resources.update(source.resources)
            merged.prompts.update(source.prompts)
        return merged

    def __len__(self) -> int:
        return len(self.tools) + len(self.resources) + len(self.prompts)


registry = Registry()
