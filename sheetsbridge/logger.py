"""Logging for the server.

Records go to stderr (stdout carries the MCP stream). While a tool call is
running, its records are also mirrored to the calling session as MCP log
notifications.
"""

import asyncio
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

LOGGER_NAME = "sheetsbridge"
LOG_FORMAT = "[%(levelname)s] %(message)s"
STDERR_HANDLER = "sheetsbridge.stderr"

# logging level -> MCP LoggingLevel
MCP_LEVELS = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


# (session, loop) of the tool call in progress
_bound_session: ContextVar[tuple[Any, asyncio.AbstractEventLoop] | None] = ContextVar(
    "sheetsbridge_mcp_session", default=None
)


def mcp_level(levelno: int) -> str:
    for threshold in sorted(MCP_LEVELS, reverse=True):
        if levelno >= threshold:
            return MCP_LEVELS[threshold]
    return "debug"


class McpLogHandler(logging.Handler):
    """Forwards log records to the MCP session of the tool call that emitted them.

    The session is bound per call through a context variable, so concurrent
    calls on separate sessions never see each other's records. Threads started
    with ``asyncio.to_thread`` inherit the binding. Outside a bound call,
    records go to stderr only.
    """

    @property
    def session(self) -> Any:
        bound = _bound_session.get()
        return bound[0] if bound else None

    @contextmanager
    def bind(self, session: Any) -> Iterator[None]:
        """Mirror records emitted inside the block to ``session``."""
        if session is None:
            yield
            return
        token = _bound_session.set((session, asyncio.get_running_loop()))
        try:
            yield
        finally:
            _bound_session.reset(token)

    def emit(self, record: logging.LogRecord) -> None:
        bound = _bound_session.get()
        if bound is None:
            return
        session, loop = bound
        if loop.is_closed():
            return
        try:
            coro = session.send_log_message(
                level=mcp_level(record.levelno),
                data=self.format(record),
                logger=record.name,
            )
            future = asyncio.run_coroutine_threadsafe(coro, loop)
            future.add_done_callback(lambda f: self._report(f, record))
        except Exception:
            self.handleError(record)

    def _report(self, future, record: logging.LogRecord) -> None:
        if not future.cancelled() and future.exception() is not None:
            self.handleError(record)


mcp_handler = McpLogHandler()


def get_logger(name: str | None = None) -> logging.Logger:
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger. Safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    logger.propagate = False
    if not any(h.get_name() == STDERR_HANDLER for h in logger.handlers):
        stderr = logging.StreamHandler(sys.stderr)
        stderr.set_name(STDERR_HANDLER)
        stderr.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stderr)
    if mcp_handler not in logger.handlers:
        mcp_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(mcp_handler)
    return logger
