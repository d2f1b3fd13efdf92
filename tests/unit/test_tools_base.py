"""
Unit tests for the tool base classes.

Tests cover:
- build() vs try_build()
- Schema validation of raw parameters
- Single-use execute()
- Exceptions from _run() converted to failed results
- Schema advertisement
"""

import threading
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, ConfigDict

from depot.cancellation import CancellationToken
from depot.errors import (
    ErrorKind,
    InvocationConsumedError,
    RemoteApiError,
    ToolValidationError,
)
from depot.schema import DepotConfig, InvocationState, ToolResult
from depot.tools.base import BuildResult, DeclarativeTool, ToolInvocation


class EchoParams(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    text: str
    count: int | None = None


class EchoInvocation(ToolInvocation[EchoParams]):
    tool_name = "echo"

    def __init__(self, *args, fail_with: Exception | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fail_with = fail_with
        self.seen_token: CancellationToken | None = None

    @property
    def description(self) -> str:
        return f"Echo {self.params.text}"

    def _run(self, token: CancellationToken | None) -> ToolResult:
        self.seen_token = token
        if self.fail_with is not None:
            raise self.fail_with
        return ToolResult.ok(self.params.text)

    def failure_message(self, error: Exception) -> str:
        return f"Error echoing: {error}"


class EchoTool(DeclarativeTool[EchoParams]):
    name = "echo"
    display_name = "Echo"
    description = "Echo text back"
    params_model = EchoParams
    capability = "echo"

    fail_with: Exception | None = None

    def validate_params(self, params: EchoParams) -> None:
        self.require_non_empty(params, "text")
        self.check_capability(params)

    def create_invocation(self, params: EchoParams) -> EchoInvocation:
        return EchoInvocation(params, self.config, self.client, fail_with=self.fail_with)


@pytest.fixture
def tool(config: DepotConfig, client: MagicMock) -> EchoTool:
    return EchoTool(config, client)


class TestBuild:
    """Tests for build() and try_build()."""

    def test_build_success(self, tool: EchoTool) -> None:
        invocation = tool.build({"text": "hi"})
        assert invocation.description == "Echo hi"
        assert invocation.state is InvocationState.BUILT

    def test_missing_required(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError, match="'text'"):
            tool.build({})

    def test_wrong_type_is_not_coerced(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError, match="Invalid parameters"):
            tool.build({"text": "hi", "count": "3"})

    def test_unknown_parameter(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError, match="'extra'"):
            tool.build({"text": "hi", "extra": 1})

    def test_none_params(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError):
            tool.build(None)

    def test_non_mapping_params(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError, match="Parameters must be an object"):
            tool.build(["text"])  # type: ignore[arg-type]

    def test_empty_string_rejected(self, tool: EchoTool) -> None:
        with pytest.raises(ToolValidationError) as exc_info:
            tool.build({"text": "   "})
        assert exc_info.value.message == "The 'text' parameter must be non-empty."
        assert exc_info.value.tool == "echo"

    def test_try_build_success(self, tool: EchoTool) -> None:
        outcome = tool.try_build({"text": "hi"})
        assert outcome.ok is True
        assert outcome.error is None
        assert outcome.unwrap().description == "Echo hi"

    def test_try_build_failure(self, tool: EchoTool) -> None:
        outcome = tool.try_build({"text": ""})
        assert outcome.ok is False
        assert outcome.invocation is None
        assert outcome.error is not None
        assert outcome.error.kind is ErrorKind.PARAMETER_INVALID
        with pytest.raises(ToolValidationError):
            outcome.unwrap()

    def test_build_is_repeatable(self, tool: EchoTool) -> None:
        first = tool.build({"text": "hi"})
        second = tool.build({"text": "hi"})
        assert first is not second
        assert first.description == second.description


class TestBuildResult:
    def test_requires_exactly_one(self) -> None:
        with pytest.raises(ValueError):
            BuildResult()


class TestExecute:
    """Tests for ToolInvocation.execute()."""

    def test_success(self, tool: EchoTool) -> None:
        invocation = tool.build({"text": "hi"})
        result = invocation.execute()
        assert result.success is True
        assert result.llm_content == "hi"
        assert invocation.state is InvocationState.SUCCEEDED

    def test_token_forwarded_unmodified(self, tool: EchoTool) -> None:
        token = CancellationToken()
        invocation = tool.build({"text": "hi"})
        invocation.execute(token)
        assert invocation.seen_token is token  # type: ignore[attr-defined]

    def test_exception_becomes_failed_result(self, tool: EchoTool) -> None:
        tool.fail_with = RemoteApiError(operation="echo", status_code=500, api_message="boom")
        invocation = tool.build({"text": "hi"})
        result = invocation.execute()
        assert result.success is False
        assert result.error is not None
        assert result.error.kind is ErrorKind.REMOTE_OPERATION_FAILED
        assert "Error echoing" in result.llm_content
        assert invocation.state is InvocationState.FAILED

    def test_plain_exception_becomes_failed_result(self, tool: EchoTool) -> None:
        tool.fail_with = OSError("disk full")
        result = tool.build({"text": "hi"}).execute()
        assert result.error is not None
        assert "disk full" in result.llm_content

    def test_second_execute_raises(self, tool: EchoTool) -> None:
        invocation = tool.build({"text": "hi"})
        invocation.execute()
        with pytest.raises(InvocationConsumedError):
            invocation.execute()

    def test_concurrent_execute_runs_once(self, tool: EchoTool) -> None:
        invocation = tool.build({"text": "hi"})
        outcomes: list[str] = []

        def run() -> None:
            try:
                invocation.execute()
                outcomes.append("ran")
            except InvocationConsumedError:
                outcomes.append("consumed")

        threads = [threading.Thread(target=run) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ran") == 1
        assert outcomes.count("consumed") == 4


class TestSchema:
    def test_schema_shape(self, tool: EchoTool) -> None:
        schema = tool.schema()
        assert schema["name"] == "echo"
        assert schema["description"] == "Echo text back"
        params = schema["parameters"]
        assert params["type"] == "object"
        assert params["required"] == ["text"]
        assert params["additionalProperties"] is False

    def test_optional_collapsed(self, tool: EchoTool) -> None:
        props = tool.parameter_schema()["properties"]
        assert props["count"]["type"] == "integer"
        assert "anyOf" not in props["count"]
        assert "default" not in props["count"]
        assert "title" not in props["text"]
