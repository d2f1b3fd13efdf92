"""
Base classes for the tool interface.

This module defines the two-phase tool lifecycle:
- DeclarativeTool: Owns the parameter schema; validates raw parameters
  and builds an invocation, or raises ToolValidationError
- ToolInvocation: An immutable, validated, single-use unit of work whose
  execute() always returns a ToolResult
- BuildResult: Tagged outcome of try_build() (invocation XOR error)

Design Principles:
    - Validation happens once, in build(); an invocation never holds
      unchecked parameters
    - build() is the only place a tool raises for bad input; execute()
      never raises for operation failures
    - Config is passed in explicitly and never mutated
    - An invocation runs at most once; a second execute() is a caller bug

Validation order in build():
    1. Schema (pydantic parameter model: required keys, strict types)
    2. Semantic checks (non-empty strings, positive numbers)
    3. Auth-mode capability gate
    4. Path sandbox
Subclasses implement 2-4 in validate_params(), in that order.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, NoReturn, TypeVar

from pydantic import BaseModel, ValidationError

from depot.cancellation import CancellationToken
from depot.errors import (
    CapabilityUnavailableError,
    ErrorKind,
    InvocationConsumedError,
    ToolValidationError,
)
from depot.remote.base import RemoteFileManager
from depot.sandbox import PathAccess, PathSandbox
from depot.schema import AuthMode, DepotConfig, InvocationState, ToolResult

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


class ToolInvocation(ABC, Generic[P]):
    """
    A validated, single-use unit of work.

    Subclasses must implement:
    - description property: What this invocation will do, for display
    - _run(): Perform the remote call and format a successful result
    - failure_message(): Describe a caught failure (must contain "Error")

    Any exception escaping _run() is caught by execute() and reported as a
    ToolResult tagged with failure_kind.

    Attributes:
        tool_name: Name of the tool that built this invocation
        failure_kind: ErrorKind used for failures caught during execute()
    """

    tool_name: ClassVar[str] = ""
    failure_kind: ClassVar[ErrorKind] = ErrorKind.REMOTE_OPERATION_FAILED

    def __init__(self, params: P, config: DepotConfig, client: RemoteFileManager) -> None:
        self._params = params
        self._config = config
        self._client = client
        self._state = InvocationState.BUILT
        self._lock = threading.Lock()

    @property
    def params(self) -> P:
        return self._params

    @property
    def config(self) -> DepotConfig:
        return self._config

    @property
    def state(self) -> InvocationState:
        return self._state

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable summary of what execute() will do."""
        ...

    def execute(self, token: CancellationToken | None = None) -> ToolResult:
        """
        Run the invocation once.

        The token is forwarded unmodified to the remote file manager.

        Args:
            token: Caller's cancellation token

        Returns:
            ToolResult; failures are reported in result.error, never raised

        Raises:
            InvocationConsumedError: If this invocation was already executed
        """
        with self._lock:
            if self._state is not InvocationState.BUILT:
                raise InvocationConsumedError(tool=self.tool_name)
            self._state = InvocationState.EXECUTING

        logger.debug("Executing %s: %s", self.tool_name, self.description)
        try:
            result = self._run(token)
        except Exception as e:
            message = self.failure_message(e)
            logger.warning("%s failed: %s", self.tool_name, message)
            result = ToolResult.fail(message, self.failure_kind)
        else:
            logger.info("%s succeeded", self.tool_name)

        self._state = InvocationState.SUCCEEDED if result.success else InvocationState.FAILED
        return result

    @abstractmethod
    def _run(self, token: CancellationToken | None) -> ToolResult:
        ...

    @abstractmethod
    def failure_message(self, error: Exception) -> str:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.tool_name} ({self._state.value})>"


@dataclass(frozen=True)
class BuildResult:
    """
    Tagged outcome of DeclarativeTool.try_build().

    Exactly one of invocation and error is set.
    """

    invocation: ToolInvocation[Any] | None = None
    error: ToolValidationError | None = None

    def __post_init__(self) -> None:
        if (self.invocation is None) == (self.error is None):
            msg = "BuildResult requires exactly one of invocation or error"
            raise ValueError(msg)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ToolInvocation[Any]:
        """Return the invocation, or raise the validation error."""
        if self.error is not None:
            raise self.error
        assert self.invocation is not None
        return self.invocation


class DeclarativeTool(ABC, Generic[P]):
    """
    Abstract base class for all Depot tools.

    A tool is a factory: it validates raw, untrusted parameters and builds
    a ToolInvocation. It holds no per-call state, so one tool instance can
    build any number of invocations concurrently.

    Subclasses must set:
    - name: Unique identifier (e.g., "upload_file")
    - display_name: Human-friendly name (e.g., "UploadFile")
    - description: What the tool does, for the model
    - params_model: Frozen pydantic model of the parameters
    - capability: Noun used in auth-mode messages (e.g., "upload")

    and implement validate_params() and create_invocation().

    Example:
        tool = UploadFileTool(config, client)
        invocation = tool.build({"absolute_path": "/project/video.mp4"})
        result = invocation.execute(token)
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    description: ClassVar[str]
    params_model: ClassVar[type[BaseModel]]
    capability: ClassVar[str] = ""

    def __init__(
        self,
        config: DepotConfig,
        client: RemoteFileManager,
        sandbox: PathSandbox | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.sandbox = sandbox or PathSandbox.from_config(config)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def build(self, params: Mapping[str, Any] | None) -> ToolInvocation[P]:
        """
        Validate parameters and build an invocation.

        Args:
            params: Raw parameters from the agent

        Returns:
            A ready-to-execute invocation

        Raises:
            ToolValidationError: If any check fails (kind parameter_invalid)
            CapabilityUnavailableError: If the auth mode does not support
                this tool (kind capability_unavailable)
        """
        validated = self._parse(params)
        try:
            self.validate_params(validated)
        except ToolValidationError as e:
            logger.debug("%s rejected parameters: %s", self.name, e.message)
            raise
        return self.create_invocation(validated)

    def try_build(self, params: Mapping[str, Any] | None) -> BuildResult:
        """Like build(), but returns a tagged BuildResult instead of raising."""
        try:
            return BuildResult(invocation=self.build(params))
        except ToolValidationError as e:
            return BuildResult(error=e)

    @abstractmethod
    def validate_params(self, params: P) -> None:
        """
        Run semantic, capability and sandbox checks, in that order.

        Raise via reject(), check_capability() and check_path().
        """
        ...

    @abstractmethod
    def create_invocation(self, params: P) -> ToolInvocation[P]:
        ...

    # =========================================================================
    # Validation helpers
    # =========================================================================

    def _parse(self, params: Mapping[str, Any] | None) -> P:
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise ToolValidationError(
                message="Parameters must be an object",
                tool=self.name,
            )
        raw = dict(params)
        try:
            return self.params_model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError as e:
            message = f"Invalid parameters: {_format_validation_error(e)}"
            logger.debug("%s rejected parameters: %s", self.name, message)
            raise ToolValidationError(message=message, tool=self.name, params=raw) from e

    def reject(self, message: str, params: P) -> NoReturn:
        """Raise a parameter_invalid error for this tool."""
        raise ToolValidationError(
            message=message,
            tool=self.name,
            params=params.model_dump(),
        )

    def require_non_empty(self, params: P, field_name: str) -> None:
        """Reject if a string parameter is empty or whitespace."""
        value = getattr(params, field_name)
        if value is None or not str(value).strip():
            self.reject(f"The '{field_name}' parameter must be non-empty.", params)

    def check_capability(self, params: P) -> None:
        """Reject if the active auth mode cannot reach the file manager."""
        mode = self.config.auth_mode
        if mode.supports_file_manager:
            return

        if mode is AuthMode.VERTEX_AI:
            message = (
                f"File {self.capability} is not supported when using Vertex AI. "
                "Please use Gemini API (GEMINI_API_KEY) or OAuth authentication."
            )
        else:
            message = (
                f"File {self.capability} requires either Gemini API key "
                "(GEMINI_API_KEY) or OAuth authentication."
            )
        raise CapabilityUnavailableError(
            message=message,
            tool=self.name,
            params=params.model_dump(),
            auth_mode=mode.value,
        )

    def check_path(
        self,
        params: P,
        field_name: str,
        *,
        label: str,
        access: PathAccess,
        check_ignore: bool,
    ) -> None:
        """Reject if the path parameter is not admissible in the sandbox."""
        verdict = self.sandbox.check(
            getattr(params, field_name),
            param=field_name,
            label=label,
            access=access,
            check_ignore=check_ignore,
        )
        if not verdict.admissible:
            self.reject(verdict.reason, params)

    # =========================================================================
    # Advertisement
    # =========================================================================

    def parameter_schema(self) -> dict[str, Any]:
        """JSON schema of the parameters, simplified for function declarations."""
        return _simplify_schema(self.params_model.model_json_schema())

    def schema(self) -> dict[str, Any]:
        """Name, description and parameter schema for tool advertisement."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameter_schema(),
        }

    def __repr__(self) -> str:
        return f"<Tool: {self.name}>"


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"'{location}': {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def _simplify_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop pydantic titles and collapse Optional[X] to X."""
    properties: dict[str, Any] = {}
    for key, prop in schema.get("properties", {}).items():
        prop = dict(prop)
        prop.pop("title", None)
        if "anyOf" in prop:
            variants = [v for v in prop.pop("anyOf") if v.get("type") != "null"]
            if len(variants) == 1:
                prop.update(variants[0])
            else:
                prop["anyOf"] = variants
        if "default" in prop and prop["default"] is None:
            del prop["default"]
        properties[key] = prop

    return {
        "type": "object",
        "properties": properties,
        "required": list(schema.get("required", [])),
        "additionalProperties": False,
    }
