"""Google Sheets persistence for accepted submissions"""
import httpx
from datetime import datetime, timezone
from typing import Callable, List, Optional
from urllib.parse import quote
from fastapi.concurrency import run_in_threadpool
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
import logging

from app.config import Settings
from app.errors import ConfigurationMissing, PersistenceFailed

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-01-01T12:00:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_credentials(email: str, private_key: str) -> service_account.Credentials:
    """Service-account credentials scoped to Sheets"""
    return service_account.Credentials.from_service_account_info(
        {
            "client_email": email,
            "private_key": private_key,
            "token_uri": GOOGLE_TOKEN_URI,
        },
        scopes=SHEETS_SCOPES
    )


class SheetsAppender:
    """Appends rows to a spreadsheet range through the Sheets REST API"""

    def __init__(
        self,
        settings: Settings,
        sheet_range: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        credentials_factory: Callable[[str, str], service_account.Credentials] = build_credentials
    ):
        self.settings = settings
        self.sheet_range = settings.sheet_range or sheet_range
        self._transport = transport
        self._credentials_factory = credentials_factory
        self._credentials = None

    def _get_credentials(self):
        email = self.settings.google_service_account_email
        private_key = self.settings.google_private_key
        sheet_id = self.settings.google_sheet_id

        if not email or not private_key or not sheet_id:
            raise ConfigurationMissing("Google Sheets credentials not configured")

        if self._credentials is None:
            # Keys pasted into env vars usually carry literal "\n"
            formatted_key = private_key.replace("\\n", "\n")
            try:
                self._credentials = self._credentials_factory(email, formatted_key)
            except (GoogleAuthError, ValueError) as e:
                raise PersistenceFailed(f"Invalid service account credentials: {e}") from e

        return self._credentials

    async def _access_token(self) -> str:
        credentials = self._get_credentials()
        if not credentials.valid:
            await run_in_threadpool(credentials.refresh, GoogleAuthRequest())
        return credentials.token

    async def append_row(self, values: List[str]) -> None:
        """
        Append one row to the configured sheet

        Raises:
            ConfigurationMissing: If service account or sheet id is missing
            PersistenceFailed: On any auth or API failure
        """
        try:
            token = await self._access_token()
        except GoogleAuthError as e:
            logger.error(f"Google Sheets auth error: {e}")
            raise PersistenceFailed(f"Failed to authenticate with Google Sheets: {e}") from e

        url = f"{SHEETS_API_URL}/{self.settings.google_sheet_id}/values/{quote(self.sheet_range, safe='')}:append"

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    params={
                        "valueInputOption": "RAW",
                        "insertDataOption": "INSERT_ROWS"
                    },
                    headers={"Authorization": f"Bearer {token}"},
                    json={"values": [values]}
                )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Google Sheets error: {e}")
            raise PersistenceFailed("Failed to save to Google Sheets") from e

        logger.info(f"Appended row to {self.sheet_range}")
