class SheetsBridgeError(Exception):
    """Base class for every error this server reports back to a caller."""


class ConfigurationError(SheetsBridgeError):
    """Raised when service account credentials are missing or invalid."""


class CredentialsNotFoundError(ConfigurationError):
    """Raised when the configured key file does not exist."""


class SheetsAPIError(SheetsBridgeError):
    """Raised when a Sheets API call fails and no narrower category applies."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class SpreadsheetNotFoundError(SheetsAPIError):
    """Raised on 404: the spreadsheet does not exist or is not shared."""


class PermissionDeniedError(SheetsAPIError):
    """Raised on 403: the service account lacks access."""


class InvalidRequestError(SheetsAPIError):
    """Raised on 400: usually a malformed A1 range."""


class SheetNotFoundError(SheetsAPIError):
    """Raised when a sheet title does not match any tab in the spreadsheet."""


class UnknownToolError(SheetsBridgeError):
    """Raised when a caller asks for a tool that is not registered."""


class ArgumentValidationError(SheetsBridgeError):
    """Raised when tool arguments do not match the tool's schema."""

    def __init__(self, tool: str, violations: list[tuple[str, str]]):
        self.tool = tool
        self.violations = violations
        lines = [f"Invalid arguments for {tool}:"]
        lines.extend(f"- {field}: {message}" for field, message in violations)
        super().__init__("\n".join(lines))
