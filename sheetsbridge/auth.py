import json

from google.oauth2 import service_account

from sheetsbridge.config import Settings
from sheetsbridge.exceptions import ConfigurationError, CredentialsNotFoundError
from sheetsbridge.logger import get_logger

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]

SETUP_HINT = (
    "Set one of the following environment variables:\n"
    "  GOOGLE_SERVICE_ACCOUNT_KEY_JSON='{\"type\":\"service_account\",...}'\n"
    "  GOOGLE_SERVICE_ACCOUNT_KEY_PATH=/path/to/service-account-key.json"
)

logger = get_logger(__name__)


def load_credentials(settings: Settings) -> service_account.Credentials:
    """Build service account credentials from inline JSON or a key file.

    Inline JSON takes precedence when both are configured.
    """
    if settings.google_service_account_key_json:
        logger.debug("Authenticating with GOOGLE_SERVICE_ACCOUNT_KEY_JSON")
        try:
            info = json.loads(settings.google_service_account_key_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"GOOGLE_SERVICE_ACCOUNT_KEY_JSON is not valid JSON: {e}"
            ) from e
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(
                f"GOOGLE_SERVICE_ACCOUNT_KEY_JSON is not a service account key: {e}"
            ) from e

    key_path = settings.google_service_account_key_path
    if key_path:
        logger.debug(f"Authenticating with key file: {key_path}")
        if not key_path.exists():
            raise CredentialsNotFoundError(f"Service account key file not found: {key_path}")
        try:
            return service_account.Credentials.from_service_account_file(str(key_path), scopes=SCOPES)
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid service account key file {key_path}: {e}") from e

    raise ConfigurationError(f"Google authentication not configured.\n{SETUP_HINT}")
