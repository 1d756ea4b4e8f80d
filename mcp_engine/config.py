import os
import json
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, model_validator

from mcp_engine.core.capabilities import ServerCapabilities

SUPPORTED_PROTOCOL_VERSIONS = ["2025-11-25", "2025-06-18"]


class PaginationConfig(BaseModel):
    default_page_size: int = 15
    max_page_size: int = 50

    @model_validator(mode="after")
    def _check_bounds(self) -> "PaginationConfig":
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"Page sizes must satisfy 1 <= default ({self.default_page_size}) <= max ({self.max_page_size})"
            )
        return self


class McpConfig(BaseModel):
    name: str = "MCP Engine"
    version: str = "1.0.0"
    instructions: Optional[str] = None
    protocol_versions: List[str] = Field(default_factory=lambda: list(SUPPORTED_PROTOCOL_VERSIONS), min_length=1)
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    pagination: PaginationConfig = PaginationConfig()


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8008
    log_level: str = "info"


class RegistryConfig(BaseModel):
    """Handler locators (``package.module:Class``) keyed by tool name, resource URI or prompt name."""

    tools: Dict[str, str] = {}
    resources: Dict[str, str] = {}
    prompts: Dict[str, str] = {}


class Config(BaseModel):
    mcp: McpConfig = McpConfig()
    server: ServerConfig = ServerConfig()
    registry: RegistryConfig = RegistryConfig()
    allowed_origins: Optional[List[str]] = None

    @classmethod
    def load(cls, config_path: str = "config.json") -> "Config":
        data: Dict[str, Any] = {}
        if not os.path.exists(config_path):
            # Try the project root when started from a subdirectory
            parent_config = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config.json")
            if os.path.exists(parent_config):
                config_path = parent_config
            else:
                config_path = None

        if config_path:
            with open(config_path, "r") as f:
                data = json.load(f)

        # Handle env var overrides
        server_data = data.get("server", {})
        server_data["host"] = os.getenv("MCP_HOST", server_data.get("host", "0.0.0.0"))
        server_data["port"] = int(os.getenv("MCP_PORT", server_data.get("port", 8008)))
        server_data["log_level"] = os.getenv("MCP_LOG_LEVEL", server_data.get("log_level", "info"))
        data["server"] = server_data

        if os.getenv("MCP_SERVER_NAME"):
            mcp_data = data.get("mcp", {})
            mcp_data["name"] = os.environ["MCP_SERVER_NAME"]
            data["mcp"] = mcp_data

        return cls(**data)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return a JSON-safe dict representation for the startup log."""
        d = self.model_dump(mode="json", by_alias=True)
        d["registry"] = {kind: len(entries) for kind, entries in d["registry"].items()}
        return d


# Global config instance
config = Config.load(os.getenv("MCP_CONFIG", "config.json"))
