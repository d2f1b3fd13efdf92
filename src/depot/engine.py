"""
Execution Engine for Depot.

The Engine is the single entry point the agent layer calls. It looks up
a tool, builds an invocation and executes it, and guarantees that every
tool-level failure comes back as a ToolResult:

Execution Flow:
    1. Look up the tool by name (unknown names raise ToolNotFoundError;
       that is a caller bug, not a tool failure)
    2. try_build() the raw parameters
        a. On validation failure: return a failed ToolResult tagged
           parameter_invalid or capability_unavailable
        b. On success: execute the invocation with the caller's token
    3. Return the ToolResult

Design Principles:
    - Fail-closed: an invocation only exists after every check passes
    - Uniform: callers never need try/except around invoke()
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from depot.cancellation import CancellationToken
from depot.remote.base import RemoteFileManager
from depot.schema import DepotConfig, ToolResult
from depot.tools.registry import ToolRegistry, create_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvocationRecord:
    """
    Outcome of one Engine.invoke() call.

    Attributes:
        tool_name: Name of the tool
        params: Raw parameters as supplied (empty if they were not an object)
        description: Invocation description (None if the build failed)
        result: The ToolResult returned to the caller
        duration_ms: Wall time in milliseconds
    """

    tool_name: str
    params: dict[str, Any]
    description: str | None
    result: ToolResult
    duration_ms: float


class Engine:
    """
    Main dispatch engine for Depot.

    Usage:
        engine = Engine(config, GeminiFileManager.from_config(config))
        result = engine.invoke("list_files", {"page_size": 10})
        if result.error:
            print(result.error.kind)

    Attributes:
        config: Read-only configuration shared by all tools
        registry: Tool registry for looking up tools
    """

    def __init__(
        self,
        config: DepotConfig,
        client: RemoteFileManager,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.registry = registry or create_registry(config, client)

    def invoke(
        self,
        tool_name: str,
        params: Mapping[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> ToolResult:
        """
        Build and execute one tool call.

        Args:
            tool_name: Registered tool name
            params: Raw parameters from the agent
            token: Cancellation token forwarded to the remote call

        Returns:
            ToolResult; build failures are reported with their error kind

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        return self.invoke_with_record(tool_name, params, token).result

    def invoke_with_record(
        self,
        tool_name: str,
        params: Mapping[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> InvocationRecord:
        """Like invoke(), but also returns the description and timing."""
        tool = self.registry.get(tool_name)
        raw = dict(params) if isinstance(params, Mapping) else {}
        start = time.perf_counter()

        # Non-mapping params are rejected by the tool, not here
        outcome = tool.try_build(params)
        if outcome.error is not None:
            error = outcome.error
            logger.info("%s rejected: %s", tool_name, error.message)
            result = ToolResult.fail(error.message, error.kind)
            description = None
        else:
            invocation = outcome.unwrap()
            description = invocation.description
            result = invocation.execute(token)

        return InvocationRecord(
            tool_name=tool_name,
            params=raw,
            description=description,
            result=result,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    def describe(self, tool_name: str, params: Mapping[str, Any] | None = None) -> str:
        """
        Build an invocation and return its description without executing it.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
            ToolValidationError: If the parameters are rejected
        """
        return self.registry.get(tool_name).build(params).description

    def close(self) -> None:
        """Close the remote client."""
        self.client.close()

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
