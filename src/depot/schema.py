"""
Schema definitions for Depot.

This module defines the Pydantic models shared across Depot:
- ToolResult/ToolErrorDetail: What every tool execution returns
- RemoteFile: A file descriptor returned by the remote file manager
- Admissibility: The outcome of sandbox validation for a path
- DepotConfig: Read-only configuration threaded into every tool

Design Decisions:
    - Models are immutable (frozen=True) so a config can be shared
      across concurrently running invocations without locking
    - Remote payloads are parsed leniently (camelCase aliases, extra keys
      ignored); local configuration is parsed strictly (extra="forbid")
"""

import hashlib
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from depot.errors import ConfigError, ErrorKind


# =============================================================================
# Enums
# =============================================================================


class AuthMode(str, Enum):
    """
    How the process authenticates against the model provider.

    Only GEMINI_API_KEY and LOGIN_WITH_GOOGLE can reach the file manager.
    VERTEX_AI is the managed-platform mode, where the Files API does not exist.
    """

    GEMINI_API_KEY = "gemini-api-key"
    LOGIN_WITH_GOOGLE = "oauth-personal"
    VERTEX_AI = "vertex-ai"
    CLOUD_SHELL = "cloud-shell"

    @property
    def supports_file_manager(self) -> bool:
        return self in (AuthMode.GEMINI_API_KEY, AuthMode.LOGIN_WITH_GOOGLE)


class InvocationState(str, Enum):
    """Lifecycle state of a single tool invocation."""

    BUILT = "built"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# =============================================================================
# Tool Results
# =============================================================================


class ToolErrorDetail(BaseModel):
    """
    Structured error attached to a failed ToolResult.

    Attributes:
        message: The failure in prose
        kind: The failure kind, for programmatic branching
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(..., min_length=1, description="The failure in prose")
    kind: ErrorKind = Field(..., description="Failure kind")


class ToolResult(BaseModel):
    """
    The outcome of a tool execution.

    Every tool returns a ToolResult, whether it succeeded or failed.
    Both content strings are always populated; on failure they describe
    the failure and contain the word "Error".

    Attributes:
        llm_content: Content returned to the model
        return_display: Content shown to the user (may be richer)
        error: Set iff the operation did not complete successfully
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    llm_content: str = Field(..., min_length=1, description="Content for the model")
    return_display: str = Field(..., min_length=1, description="Content for display")
    error: ToolErrorDetail | None = Field(default=None, description="Failure details")

    @model_validator(mode="after")
    def check_error_is_visible(self) -> "ToolResult":
        """Failed results must say so in both content strings."""
        if self.error is not None:
            for text in (self.llm_content, self.return_display):
                if "Error" not in text:
                    msg = "Failed ToolResult content must contain 'Error'"
                    raise ValueError(msg)
        return self

    @property
    def success(self) -> bool:
        """Whether the operation completed successfully."""
        return self.error is None

    @classmethod
    def ok(cls, content: str, display: str | None = None) -> "ToolResult":
        """Create a successful result."""
        return cls(llm_content=content, return_display=display or content)

    @classmethod
    def fail(cls, message: str, kind: ErrorKind) -> "ToolResult":
        """Create a failed result; content is prefixed with 'Error:' if needed."""
        text = message if message.startswith("Error") else f"Error: {message}"
        return cls(
            llm_content=text,
            return_display=text,
            error=ToolErrorDetail(message=message, kind=kind),
        )


# =============================================================================
# Remote Descriptors
# =============================================================================


class RemoteFile(BaseModel):
    """
    A file stored in the remote file manager.

    Parsed from the REST payload, which uses camelCase keys and encodes
    sizes as strings. Only the identifier is guaranteed to be present.

    Attributes:
        name: Resource identifier (e.g., "files/abc123")
        uri: Full URI usable in prompts
        display_name: Human-readable name given at upload time
        mime_type: MIME type detected by the service
        size_bytes: Size in bytes
        state: Lifecycle state (PROCESSING, ACTIVE, FAILED)
        create_time: RFC 3339 creation timestamp, as sent by the service
        expiration_time: RFC 3339 expiry timestamp
        sha256_hash: Base64 SHA-256 of the content
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: str = Field(..., min_length=1)
    uri: str | None = None
    display_name: str | None = None
    mime_type: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)
    state: str | None = None
    create_time: str | None = None
    expiration_time: str | None = None
    sha256_hash: str | None = None


# =============================================================================
# Sandbox Verdicts
# =============================================================================


class Admissibility(BaseModel):
    """
    Result of checking a path against the sandbox.

    Attributes:
        admissible: Whether the path may be used
        reason: Human-readable explanation (the rejection message on deny)
        rule: Which sandbox rule produced this verdict
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    admissible: bool
    reason: str
    rule: str | None = None

    @classmethod
    def allow(cls, reason: str, rule: str | None = None) -> "Admissibility":
        """Create an admitting verdict."""
        return cls(admissible=True, reason=reason, rule=rule)

    @classmethod
    def deny(cls, reason: str, rule: str | None = None) -> "Admissibility":
        """Create a rejecting verdict."""
        return cls(admissible=False, reason=reason, rule=rule)


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_IGNORE_FILE = ".depotignore"


class DepotConfig(BaseModel):
    """
    Read-only configuration passed explicitly into every tool.

    Nothing in Depot mutates a config after construction, so one instance
    can back any number of concurrent invocations.

    Attributes:
        target_dir: The project root; relative descriptions are computed from here
        workspace_dirs: Extra directories inside the sandbox (target_dir is implied)
        temp_dir: Project temp directory, always admissible (derived if omitted)
        auth_mode: Active authentication mode
        api_key: Gemini API key (falls back to $GEMINI_API_KEY)
        access_token: OAuth bearer token for oauth-personal mode
        base_url: Root URL of the Gemini API
        timeout_seconds: HTTP timeout for remote calls
        ignore_patterns: Extra ignore patterns on top of the ignore file
        ignore_file: Name of the ignore file in target_dir
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_dir: Path = Field(default_factory=Path.cwd, description="Project root")
    workspace_dirs: tuple[Path, ...] = Field(
        default=(),
        description="Additional workspace directories",
    )
    temp_dir: Path | None = Field(default=None, description="Project temp directory")
    auth_mode: AuthMode = Field(
        default=AuthMode.GEMINI_API_KEY,
        description="Active authentication mode",
    )
    api_key: str | None = Field(default=None, description="Gemini API key")
    access_token: str | None = Field(default=None, description="OAuth access token")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Gemini API root URL")
    timeout_seconds: int = Field(
        default=60,
        description="HTTP timeout for remote calls",
        gt=0,
        le=600,
    )
    ignore_patterns: tuple[str, ...] = Field(
        default=(),
        description="Extra gitignore-style patterns",
    )
    ignore_file: str = Field(
        default=DEFAULT_IGNORE_FILE,
        description="Ignore file name in target_dir",
        min_length=1,
    )

    @field_validator("target_dir", "temp_dir")
    @classmethod
    def resolve_dir(cls, v: Path | None) -> Path | None:
        """Store directories in absolute, canonical form."""
        if v is None:
            return None
        return v.expanduser().resolve()

    @field_validator("workspace_dirs")
    @classmethod
    def resolve_dirs(cls, v: tuple[Path, ...]) -> tuple[Path, ...]:
        """Store workspace directories in absolute, canonical form."""
        return tuple(p.expanduser().resolve() for p in v)

    @property
    def workspace_roots(self) -> list[Path]:
        """target_dir followed by workspace_dirs, without duplicates."""
        roots: list[Path] = []
        for root in [self.target_dir, *self.workspace_dirs]:
            if root not in roots:
                roots.append(root)
        return roots

    @property
    def project_temp_dir(self) -> Path:
        """The temp carve-out; ~/.depot/tmp/<hash of target_dir> by default."""
        if self.temp_dir is not None:
            return self.temp_dir
        digest = hashlib.sha256(str(self.target_dir).encode("utf-8")).hexdigest()
        return (Path.home() / ".depot" / "tmp" / digest[:16]).resolve()

    def resolved_api_key(self) -> str | None:
        """The configured API key, or $GEMINI_API_KEY."""
        return self.api_key or os.environ.get("GEMINI_API_KEY") or None


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def _config_from_data(data: Any, source: str) -> DepotConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            message=f"Configuration must be a mapping: {source}",
            path=source,
        )
    try:
        return DepotConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(message=f"Invalid configuration in {source}: {e}", path=source) from e


def load_config(path: Path | str) -> DepotConfig:
    """
    Load a configuration from a YAML file.

    Relative directories in the file are resolved against the file's own
    directory, not the process working directory.

    Args:
        path: Path to the YAML file

    Returns:
        Validated DepotConfig

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid
    """
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(message=f"Cannot read configuration: {e}", path=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if isinstance(data, dict):
        base = path.resolve().parent
        data = dict(data)
        for key in ("target_dir", "temp_dir"):
            if data.get(key):
                data[key] = str(base / Path(data[key]).expanduser())
        if isinstance(data.get("workspace_dirs"), list):
            data["workspace_dirs"] = [
                str(base / Path(d).expanduser()) for d in data["workspace_dirs"]
            ]
        data.setdefault("target_dir", str(base))

    return _config_from_data(data, str(path))


def load_config_from_string(content: str) -> DepotConfig:
    """Load a configuration from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML: {e}", path="<string>") from e
    return _config_from_data(data, "<string>")
