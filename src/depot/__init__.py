"""
Depot - Sandboxed, cancellable file manager tools for LLM agents.

Depot sits between an agent and a remote file manager (the Gemini API
Files service). It provides:
- Declarative tools with a two-phase build/execute lifecycle
- A filesystem sandbox (workspace roots, temp carve-out, ignore patterns)
- A closed error taxonomy surfaced through ToolResult
- Cooperative cancellation forwarded to every remote call

Example usage:
    $ depot upload /project/video.mp4 --config depot.yaml
    $ depot list --page-size 20
    $ depot call download_file --args '{"file_uri": "files/abc", "download_path": "/project/out.mp4"}'
"""

__version__ = "0.1.0"
__author__ = "Depot Contributors"

__all__ = [
    "__version__",
    "__author__",
]
