"""
Cooperative cancellation for remote calls.

A CancellationToken is created by the caller, handed to execute(), and
forwarded untouched to the remote file manager. The adapter polls it at
its suspension points (before each request, between chunks and pages)
and raises OperationCancelledError once it fires.

Tokens are one-way: once cancelled they stay cancelled. They are safe to
cancel from another thread, e.g. a signal handler or UI thread.
"""

import threading

from depot.errors import OperationCancelledError


class CancellationToken:
    """
    Thread-safe, one-shot cancellation signal.

    Usage:
        token = CancellationToken()
        worker = threading.Thread(target=invocation.execute, args=(token,))
        worker.start()
        ...
        token.cancel("user pressed Ctrl-C")
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "Operation cancelled") -> None:
        """Request cancellation. Later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout; returns whether cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self, operation: str = "") -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError(
                message=self._reason or "Operation cancelled",
                operation=operation,
            )

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"<CancellationToken: {state}>"


def check_cancelled(token: CancellationToken | None, operation: str = "") -> None:
    """raise_if_cancelled() for an optional token."""
    if token is not None:
        token.raise_if_cancelled(operation)
