import threading
from functools import lru_cache
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from sheetsbridge.config import Settings, get_settings
from sheetsbridge.exceptions import (
    ArgumentValidationError,
    ConfigurationError,
    InvalidRequestError,
    PermissionDeniedError,
    SheetNotFoundError,
    SheetsAPIError,
    SheetsBridgeError,
    SpreadsheetNotFoundError,
    UnknownToolError,
)
from sheetsbridge.logger import get_logger
from sheetsbridge.models.common import ToolDescriptor, ToolResult
from sheetsbridge.services.sheets import SheetsClient, build_sheets_client
from sheetsbridge.tools import TOOLS, ToolSpec

logger = get_logger(__name__)

# Most specific first.
ERROR_CODES: list[tuple[type[Exception], str]] = [
    (UnknownToolError, "unknown_tool"),
    (ArgumentValidationError, "invalid_arguments"),
    (ConfigurationError, "configuration_error"),
    (SheetNotFoundError, "not_found"),
    (SpreadsheetNotFoundError, "not_found"),
    (PermissionDeniedError, "permission_denied"),
    (InvalidRequestError, "invalid_request"),
    (SheetsAPIError, "sheets_api_error"),
]


def error_code(e: Exception) -> str:
    for exc_type, code in ERROR_CODES:
        if isinstance(e, exc_type):
            return code
    return "internal_error"


class SheetsContext:
    """Holds the process-wide Sheets client, built on first use and never rebuilt.

    Pass ``client`` to substitute a fake in tests.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: SheetsClient | None = None,
        client_factory: Callable[[Settings], SheetsClient] = build_sheets_client,
    ):
        self._settings = settings
        self._client = client
        self._client_factory = client_factory
        self._lock = threading.Lock()

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def get_client(self) -> SheetsClient:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    logger.debug("Creating Sheets API client")
                    self._client = self._client_factory(self.settings)
        return self._client


def format_violations(e: ValidationError) -> list[tuple[str, str]]:
    violations = []
    for err in e.errors():
        field = ".".join(str(part) for part in err["loc"]) or "(arguments)"
        violations.append((field, err["msg"]))
    return violations


class Dispatcher:
    def __init__(self, context: SheetsContext, tools: Mapping[str, ToolSpec] = TOOLS):
        self.context = context
        self.tools = tools

    def list_tools(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(name=spec.name, description=spec.description, input_schema=spec.input_schema())
            for spec in self.tools.values()
        ]

    def lookup(self, name: str) -> ToolSpec:
        spec = self.tools.get(name)
        if spec is None:
            raise UnknownToolError(f"Unknown tool: {name}")
        return spec

    def validate(self, spec: ToolSpec, arguments: Any):
        if arguments is None:
            arguments = {}
        try:
            return spec.arguments.model_validate(arguments)
        except ValidationError as e:
            raise ArgumentValidationError(spec.name, format_violations(e)) from e

    async def dispatch(self, name: str, arguments: Any) -> ToolResult:
        """Run one tool call. Never raises; failures come back as error envelopes."""
        logger.debug(f"Tool invoked: {name}")
        try:
            spec = self.lookup(name)
            args = self.validate(spec, arguments)
        except (UnknownToolError, ArgumentValidationError) as e:
            logger.error(str(e))
            return ToolResult.failure(error_code(e), str(e))

        try:
            text = await spec.handler(self.context.get_client(), args)
        except SheetsBridgeError as e:
            logger.error(f"{name} error: {e}")
            return ToolResult.failure(error_code(e), f"{spec.error_prefix}: {e}")
        except Exception as e:
            logger.exception(f"Tool execution failed: {name}")
            return ToolResult.failure("internal_error", f"Tool execution failed: {e}")
        return ToolResult.success(text)


@lru_cache
def get_dispatcher() -> Dispatcher:
    """The process-wide dispatcher shared by the MCP and HTTP surfaces."""
    return Dispatcher(SheetsContext())
