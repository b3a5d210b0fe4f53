import asyncio
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from sheetsbridge.logger import (
    LOGGER_NAME,
    STDERR_HANDLER,
    McpLogHandler,
    get_logger,
    mcp_handler,
    mcp_level,
    setup_logging,
)


@pytest.fixture
def session():
    s = MagicMock()
    s.send_log_message = AsyncMock()
    return s


@pytest.fixture
def package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def _record(level=logging.INFO, msg="hello", name="sheetsbridge.tools"):
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


class TestMcpLevel:
    @pytest.mark.parametrize("levelno,expected", [
        (logging.DEBUG, "debug"),
        (logging.INFO, "info"),
        (logging.WARNING, "warning"),
        (logging.ERROR, "error"),
        (logging.CRITICAL, "critical"),
        (5, "debug"),
        (logging.INFO + 5, "info"),
    ])
    def test_mapping(self, levelno, expected):
        assert mcp_level(levelno) == expected


class TestMcpLogHandler:
    async def test_forwards_records_to_bound_session(self, session):
        handler = McpLogHandler()
        with handler.bind(session):
            assert handler.session is session
            handler.emit(_record(logging.WARNING, "careful"))
            await asyncio.sleep(0.05)
        session.send_log_message.assert_awaited_once_with(
            level="warning", data="careful", logger="sheetsbridge.tools"
        )

    def test_unbound_emit_is_noop(self):
        handler = McpLogHandler()
        handler.emit(_record())
        assert handler.session is None

    async def test_bind_none_is_noop(self):
        handler = McpLogHandler()
        with handler.bind(None):
            assert handler.session is None

    async def test_concurrent_calls_keep_their_own_session(self):
        handler = McpLogHandler()
        first, second = MagicMock(), MagicMock()
        first.send_log_message = AsyncMock()
        second.send_log_message = AsyncMock()

        async def call(session, msg):
            with handler.bind(session):
                await asyncio.sleep(0.01)
                handler.emit(_record(msg=msg))
                await asyncio.sleep(0.01)

        await asyncio.gather(call(first, "from first"), call(second, "from second"))
        await asyncio.sleep(0.05)
        first.send_log_message.assert_awaited_once_with(level="info", data="from first", logger="sheetsbridge.tools")
        second.send_log_message.assert_awaited_once_with(level="info", data="from second", logger="sheetsbridge.tools")

    async def test_worker_threads_inherit_binding(self, session):
        handler = McpLogHandler()
        with handler.bind(session):
            await asyncio.to_thread(handler.emit, _record(msg="from thread"))
            await asyncio.sleep(0.05)
        session.send_log_message.assert_awaited_once_with(
            level="info", data="from thread", logger="sheetsbridge.tools"
        )

    async def test_records_after_call_are_not_forwarded(self, session, mocker):
        handler = McpLogHandler()
        handle_error = mocker.patch.object(handler, "handleError")
        with handler.bind(session):
            pass
        handler.emit(_record())
        await asyncio.sleep(0.05)
        session.send_log_message.assert_not_called()
        handle_error.assert_not_called()

    async def test_send_failure_does_not_raise(self, session, mocker):
        session.send_log_message.side_effect = RuntimeError("stream closed")
        handler = McpLogHandler()
        handle_error = mocker.patch.object(handler, "handleError")
        with handler.bind(session):
            handler.emit(_record())
            await asyncio.sleep(0.05)
        handle_error.assert_called_once()


class TestGetLogger:
    def test_names_are_namespaced(self):
        assert get_logger().name == "sheetsbridge"
        assert get_logger("sheetsbridge.auth").name == "sheetsbridge.auth"
        assert get_logger("auth").name == "sheetsbridge.auth"


class TestSetupLogging:
    def test_idempotent(self, package_logger):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        stderr_handlers = [h for h in package_logger.handlers if h.get_name() == STDERR_HANDLER]
        assert len(stderr_handlers) == 1
        assert package_logger.handlers.count(mcp_handler) == 1

    def test_level_and_no_propagation(self, package_logger):
        logger = setup_logging("warning")
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_writes_to_stderr_not_stdout(self, package_logger, capsys):
        package_logger.handlers[:] = []
        setup_logging("INFO")
        get_logger("tools").info("to stderr")
        out, err = capsys.readouterr()
        assert out == ""
        assert "[INFO] to stderr" in err
