"""
Tool registry for Depot.

The registry maps tool names to tool instances and produces the schema
list used to advertise tools to a model.

Design:
    - No global registry: tools hold a config, so a registry is built per
      config with create_registry()
    - Clear error messages for unknown tools

Usage:
    from depot.tools.registry import create_registry

    registry = create_registry(config, client)
    tool = registry.get("upload_file")
    declarations = registry.schemas()
"""

from collections.abc import Iterator
from typing import Any

from depot.errors import ToolNotFoundError
from depot.remote.base import RemoteFileManager
from depot.sandbox import PathSandbox
from depot.schema import DepotConfig
from depot.tools.base import DeclarativeTool
from depot.tools.download import DownloadFileTool
from depot.tools.listing import ListFilesTool
from depot.tools.upload import UploadFileTool


class ToolRegistry:
    """
    Name -> tool mapping for one config.

    The agent layer resolves model-chosen tool names here; schemas() is
    what gets advertised to the model.
    """

    def __init__(self) -> None:
        self._tools: dict[str, DeclarativeTool[Any]] = {}

    def register(self, tool: DeclarativeTool[Any]) -> None:
        """
        Add a tool under its declared name.

        A tool with the same name is replaced.

        Raises:
            ValueError: If the object is not a DeclarativeTool or has no name
        """
        if not isinstance(tool, DeclarativeTool):
            msg = f"Expected a DeclarativeTool, got {type(tool).__name__}"
            raise ValueError(msg)
        if not tool.name:
            msg = f"{type(tool).__name__} does not declare a tool name"
            raise ValueError(msg)

        self._tools[tool.name] = tool

    def get(self, name: str) -> DeclarativeTool[Any]:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(tool=name)
        return tool

    def get_optional(self, name: str) -> DeclarativeTool[Any] | None:
        """Look up a tool by name, returning None if not found."""
        return self._tools.get(name)

    def unregister(self, name: str) -> bool:
        """Remove a tool; returns False if it wasn't registered."""
        if name in self._tools:
            del self._tools[name]
            return True
        return False

    def list_tools(self) -> list[str]:
        """List all registered tool names in sorted order."""
        return sorted(self._tools.keys())

    def schemas(self) -> list[dict[str, Any]]:
        """Function declarations for every registered tool, sorted by name."""
        return [self._tools[name].schema() for name in self.list_tools()]

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[DeclarativeTool[Any]]:
        return iter(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        tools = ", ".join(self.list_tools())
        return f"<ToolRegistry: [{tools}]>"


def create_registry(config: DepotConfig, client: RemoteFileManager) -> ToolRegistry:
    """
    Build a registry with the built-in file manager tools.

    All tools share one sandbox, built once from the config.
    """
    sandbox = PathSandbox.from_config(config)
    registry = ToolRegistry()
    registry.register(UploadFileTool(config, client, sandbox))
    registry.register(DownloadFileTool(config, client, sandbox))
    registry.register(ListFilesTool(config, client, sandbox))
    return registry
