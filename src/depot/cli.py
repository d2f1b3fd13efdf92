"""
CLI entry point for Depot.

This module provides the Typer-based command-line interface for Depot.
It lets an operator drive the same tools an agent would call.

Commands:
    tools       List available tools and their parameter schemas
    call        Invoke any tool with JSON parameters
    upload      Upload a workspace file
    list        List remote files
    download    Download a remote file into the workspace
    doctor      Check configuration and credentials

Architecture Note:
    The CLI is intentionally thin - it loads the config and delegates to
    the Engine. Execution runs on a worker thread so Ctrl-C can cancel the
    remote call through the cancellation token.
"""

import json
import logging
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from depot import __version__
from depot.cancellation import CancellationToken
from depot.engine import Engine, InvocationRecord
from depot.errors import ConfigError, ToolNotFoundError
from depot.remote import GeminiFileManager
from depot.schema import AuthMode, DepotConfig, load_config

DEFAULT_CONFIG_NAME = "depot.yaml"

app = typer.Typer(
    name="depot",
    help="Sandboxed file manager tools for LLM agents.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to the config YAML file. Defaults to ./{DEFAULT_CONFIG_NAME} if present.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results in JSON format."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Enable debug logging."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]depot[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Depot - Sandboxed file manager tools for LLM agents.

    Upload, list and download files in the Gemini API file manager while
    keeping every local path inside the configured workspace.
    """


# =============================================================================
# Commands
# =============================================================================


@app.command()
def tools(
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    List available tools.

    Example:
        $ depot tools --json
    """
    config = _load_config_or_exit(config_path, json_output)
    with _create_engine(config) as engine:
        schemas = engine.registry.schemas()

    if json_output:
        print(json.dumps(schemas, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")
    for schema in schemas:
        required = set(schema["parameters"]["required"])
        params = ", ".join(
            name if name in required else f"[{name}]"
            for name in schema["parameters"]["properties"]
        )
        description = schema["description"]
        if len(description) > 80:
            description = description[:77] + "..."
        table.add_row(schema["name"], params or "-", description)
    console.print(table)


@app.command()
def call(
    tool_name: Annotated[str, typer.Argument(help="Name of the tool to invoke.")],
    args: Annotated[
        str,
        typer.Option("--args", "-a", help="Tool parameters as a JSON object."),
    ] = "{}",
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Invoke a tool with JSON parameters.

    Example:
        $ depot call list_files --args '{"page_size": 5}'
    """
    try:
        params = json.loads(args)
    except json.JSONDecodeError as e:
        _fail("invalid_args", f"--args is not valid JSON: {e}", json_output)
    if not isinstance(params, dict):
        _fail("invalid_args", "--args must be a JSON object", json_output)

    _run_tool(tool_name, params, config_path, json_output, verbose)


@app.command()
def upload(
    path: Annotated[Path, typer.Argument(help="File to upload.", resolve_path=True)],
    display_name: Annotated[
        Optional[str],
        typer.Option("--display-name", "-n", help="Display name for the remote copy."),
    ] = None,
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Upload a workspace file to the Gemini API file manager.

    Example:
        $ depot upload ./video.mp4 --display-name "demo"
    """
    params: dict[str, Any] = {"absolute_path": str(path)}
    if display_name is not None:
        params["display_name"] = display_name
    _run_tool("upload_file", params, config_path, json_output, verbose)


@app.command("list")
def list_files(
    page_size: Annotated[
        Optional[int],
        typer.Option("--page-size", help="Per-page size hint."),
    ] = None,
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    List files in the Gemini API file manager.

    Example:
        $ depot list --page-size 20
    """
    params: dict[str, Any] = {}
    if page_size is not None:
        params["page_size"] = page_size
    _run_tool("list_files", params, config_path, json_output, verbose)


@app.command()
def download(
    file_uri: Annotated[str, typer.Argument(help="Remote file name or URI.")],
    path: Annotated[Path, typer.Argument(help="Where to save the file.", resolve_path=True)],
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Download a remote file into the workspace.

    Example:
        $ depot download files/abc123 ./output.mp4
    """
    params = {"file_uri": file_uri, "download_path": str(path)}
    _run_tool("download_file", params, config_path, json_output, verbose)


@app.command()
def doctor(
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Check configuration and credentials.

    Verifies:
    - Python version (3.11+)
    - Config file loads
    - Auth mode supports the file manager
    - Credentials are present for the auth mode

    Example:
        $ depot doctor
    """
    checks: list[dict[str, Any]] = []

    py_version = sys.version_info
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "value": f"{py_version.major}.{py_version.minor}.{py_version.micro}",
        "message": "OK" if py_ok else "Requires Python 3.11+",
    })

    try:
        config: DepotConfig | None = _load_config(config_path)
        checks.append({
            "name": "Configuration",
            "ok": True,
            "value": str(config_path or "defaults"),
            "message": "OK",
        })
    except ConfigError as e:
        config = None
        checks.append({
            "name": "Configuration",
            "ok": False,
            "value": str(config_path or "defaults"),
            "message": e.message,
        })

    if config is not None:
        mode_ok = config.auth_mode.supports_file_manager
        checks.append({
            "name": "Auth mode",
            "ok": mode_ok,
            "value": config.auth_mode.value,
            "message": "OK" if mode_ok else "File manager tools are unavailable in this mode",
        })

        if config.auth_mode is AuthMode.LOGIN_WITH_GOOGLE:
            creds_ok = bool(config.access_token)
            creds_message = "OK" if creds_ok else "Set access_token in the config"
        else:
            creds_ok = bool(config.resolved_api_key())
            creds_message = "OK" if creds_ok else "Set api_key in the config or GEMINI_API_KEY"
        checks.append({
            "name": "Credentials",
            "ok": creds_ok,
            "value": "present" if creds_ok else "missing",
            "message": creds_message,
        })

        checks.append({
            "name": "Workspace",
            "ok": True,
            "value": ", ".join(str(r) for r in config.workspace_roots),
            "message": f"temp: {config.project_temp_dir}",
        })

    all_ok = all(check["ok"] for check in checks)

    if json_output:
        print(json.dumps({"ok": all_ok, "checks": checks}, indent=2))
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Check")
        table.add_column("Status", width=6)
        table.add_column("Value", style="cyan")
        table.add_column("Message")
        for check in checks:
            status = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            table.add_row(check["name"], status, check["value"], check["message"])
        console.print(table)

    raise typer.Exit(code=0 if all_ok else 1)


# =============================================================================
# Helpers
# =============================================================================


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_path: Path | None) -> DepotConfig:
    """Load the given config, ./depot.yaml, or defaults rooted at cwd."""
    if config_path is not None:
        return load_config(config_path)
    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if default.is_file():
        return load_config(default)
    return DepotConfig(target_dir=Path.cwd())


def _load_config_or_exit(config_path: Path | None, json_output: bool) -> DepotConfig:
    try:
        return _load_config(config_path)
    except ConfigError as e:
        _fail("config_error", e.message, json_output)


def _create_engine(config: DepotConfig) -> Engine:
    return Engine(config, GeminiFileManager.from_config(config))


def _run_tool(
    tool_name: str,
    params: dict[str, Any],
    config_path: Path | None,
    json_output: bool,
    verbose: bool,
) -> None:
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path, json_output)

    token = CancellationToken()
    with _create_engine(config) as engine, ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(engine.invoke_with_record, tool_name, params, token)
        try:
            record = _wait_for(future, token)
        except ToolNotFoundError as e:
            _fail("tool_not_found", e.message, json_output)

    if json_output:
        _output_json_record(record)
    else:
        _display_record(record, verbose)

    raise typer.Exit(code=0 if record.result.success else 1)


def _wait_for(future: "Future[InvocationRecord]", token: CancellationToken) -> InvocationRecord:
    """Wait for the worker, turning Ctrl-C into a cancellation request."""
    while True:
        try:
            return future.result(timeout=0.1)
        except TimeoutError:
            continue
        except KeyboardInterrupt:
            if not token.cancelled:
                err_console.print("[yellow]Cancelling...[/yellow]")
                token.cancel("Cancelled by user")


def _display_record(record: InvocationRecord, verbose: bool) -> None:
    result = record.result
    if verbose and record.description:
        console.print(f"[dim]{record.description}[/dim]")

    if result.success:
        console.print(result.return_display, markup=False, highlight=False)
    else:
        console.print(f"[red]✗[/red] [bold]{record.tool_name}[/bold]")
        console.print(result.return_display, markup=False, highlight=False, style="red")
        if result.error is not None:
            console.print(f"[dim]kind: {result.error.kind.value}[/dim]")

    if verbose:
        console.print(f"[dim]Duration: {record.duration_ms:.1f}ms[/dim]")


def _output_json_record(record: InvocationRecord) -> None:
    result = record.result
    output = {
        "tool": record.tool_name,
        "params": record.params,
        "description": record.description,
        "success": result.success,
        "llm_content": result.llm_content,
        "return_display": result.return_display,
        "error": result.error.model_dump(mode="json") if result.error else None,
        "duration_ms": record.duration_ms,
    }
    print(json.dumps(output, indent=2, default=str))


def _fail(error_type: str, message: str, json_output: bool) -> Any:
    """Report a CLI-level error and exit with code 1."""
    if json_output:
        print(json.dumps({"error": True, "error_type": error_type, "message": message}, indent=2))
    else:
        err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
