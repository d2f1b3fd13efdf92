"""
Exception hierarchy and error taxonomy for Depot.

All Depot exceptions inherit from DepotError, allowing callers to catch
all Depot-specific exceptions with a single except clause.

Two vocabularies live here:
    - ErrorKind: the closed set of failure kinds attached to ToolResult.error.
      Callers branch on the kind, never on message text.
    - Exception classes: what build() raises and what the remote adapter
      raises inside execute(). Invocations catch the latter and convert them
      to ToolResults; only validation errors ever leave build().

Exception Categories:
    - ToolValidationError: Parameters rejected while building an invocation
    - CapabilityUnavailableError: Auth mode does not support the tool
    - RemoteError: Remote file manager call failed (transport, API, payload)
    - ConfigError: Configuration could not be loaded
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure kinds surfaced via ToolResult.error.kind."""

    PARAMETER_INVALID = "parameter_invalid"
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    REMOTE_OPERATION_FAILED = "remote_operation_failed"
    LISTING_FAILED = "listing_failed"


# =============================================================================
# Error Codes
# =============================================================================

# Validation errors: 1xxx
ERROR_TOOL_INVALID_PARAMS = 1001
ERROR_CAPABILITY_UNAVAILABLE = 1002

# Tool errors: 2xxx
ERROR_TOOL_NOT_FOUND = 2001
ERROR_INVOCATION_CONSUMED = 2002

# Remote errors: 3xxx
ERROR_REMOTE_REQUEST = 3001
ERROR_REMOTE_API = 3002
ERROR_REMOTE_RESPONSE = 3003
ERROR_REMOTE_CANCELLED = 3004

# Config errors: 4xxx
ERROR_CONFIG_INVALID = 4001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class DepotError(Exception):
    """
    Base exception for all Depot errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


@dataclass
class ToolValidationError(DepotError):
    """
    Raised by DeclarativeTool.build() when parameters are rejected.

    This is the only exception allowed to interrupt control flow in the
    tool lifecycle, and it is only ever raised before an invocation exists.

    Attributes:
        tool: Name of the tool that rejected the parameters
        params: The raw parameters that were provided
    """

    tool: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.PARAMETER_INVALID

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid parameters for {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_INVALID_PARAMS
        self.context.update({
            "tool": self.tool,
            "params": self.params,
        })


@dataclass
class CapabilityUnavailableError(ToolValidationError):
    """Raised when the active authentication mode does not support a tool."""

    auth_mode: str = ""

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.CAPABILITY_UNAVAILABLE

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.tool} is not available with auth mode {self.auth_mode}"
        if self.code == 0:
            self.code = ERROR_CAPABILITY_UNAVAILABLE
        if not self.suggestion:
            self.suggestion = "Use Gemini API key or OAuth authentication"
        super().__post_init__()
        self.context["auth_mode"] = self.auth_mode


# =============================================================================
# Tool Errors
# =============================================================================


@dataclass
class ToolNotFoundError(DepotError):
    """Raised when a tool is not registered."""

    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool not found: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Check tool name spelling or register the tool"
        self.context["tool"] = self.tool


@dataclass
class InvocationConsumedError(DepotError):
    """
    Raised when execute() is called on an invocation that already ran.

    This is a caller bug, not a tool failure, so it is raised rather than
    reported through a ToolResult.
    """

    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invocation of {self.tool} has already been executed"
        if self.code == 0:
            self.code = ERROR_INVOCATION_CONSUMED
        if not self.suggestion:
            self.suggestion = "Build a new invocation for each execution"
        self.context["tool"] = self.tool


# =============================================================================
# Remote Errors
# =============================================================================


@dataclass
class RemoteError(DepotError):
    """
    Base class for remote file manager failures.

    Attributes:
        operation: The adapter operation that failed (upload, download, list)
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class RemoteRequestError(RemoteError):
    """Raised when the request could not be sent or the connection failed."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Request failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_REMOTE_REQUEST
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class RemoteApiError(RemoteError):
    """Raised when the remote API answers with an error status."""

    status_code: int = 0
    api_message: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            detail = self.api_message or "no error details"
            self.message = f"HTTP {self.status_code}: {detail}"
        if self.code == 0:
            self.code = ERROR_REMOTE_API
        super().__post_init__()
        self.context.update({
            "status_code": self.status_code,
            "api_message": self.api_message,
        })


@dataclass
class RemoteResponseError(RemoteError):
    """Raised when the remote API answers with a payload we cannot use."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Malformed response from remote file manager"
        if self.code == 0:
            self.code = ERROR_REMOTE_RESPONSE
        super().__post_init__()


@dataclass
class OperationCancelledError(RemoteError):
    """Raised by the adapter when the caller's cancellation token fires."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Operation cancelled"
        if self.code == 0:
            self.code = ERROR_REMOTE_CANCELLED
        super().__post_init__()


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(DepotError):
    """Raised when a configuration file cannot be loaded or validated."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context["path"] = self.path


def error_message(error: BaseException) -> str:
    """
    Extract a display message from any exception.

    DepotErrors contribute their bare message (no code prefix or
    suggestion); everything else falls back to str(), then the type name.
    """
    if isinstance(error, DepotError):
        return error.message
    return str(error) or type(error).__name__
