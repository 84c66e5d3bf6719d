"""
Drive Auth — OAuth credential acquisition for the Google Drive API.

Credentials come from a cached token file when possible. Expired tokens
are refreshed; otherwise the installed-app consent flow runs in the
browser and the new token is written back to disk.
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]


class DriveCredentialProvider:
    """
    Supplies authorised Drive credentials.

    Usage:
        provider = DriveCredentialProvider("credentials.json", "token.json")
        creds = provider.acquire()
    """

    def __init__(
        self,
        credentials_file: Path,
        token_file: Path,
        scopes: Optional[List[str]] = None
    ):
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)
        self.scopes = scopes or DRIVE_SCOPES

    def acquire(self) -> Credentials:
        """
        Return valid credentials, refreshing or re-authorising as needed.

        Raises:
            FileNotFoundError: If no usable token exists and the client
                secrets file is missing.
        """
        creds = self._load_token()

        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                logger.info("Drive token refreshed.")
                self.persist(creds)
                return creds
            except RefreshError as e:
                logger.warning(f"Token refresh failed ({e}), re-authorising.")

        creds = self._authorize()
        self.persist(creds)
        return creds

    def persist(self, creds: Credentials):
        """Write credentials to the token file, readable by the owner only."""
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(creds.to_json())
        logger.info(f"Token saved to {self.token_file}")

    def _load_token(self) -> Optional[Credentials]:
        if not self.token_file.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(
                str(self.token_file), self.scopes
            )
        except ValueError as e:
            logger.warning(f"Ignoring unreadable token file {self.token_file}: {e}")
            return None

    def _authorize(self) -> Credentials:
        """Run the browser consent flow."""
        if not self.credentials_file.exists():
            raise FileNotFoundError(
                f"Client secrets file not found: {self.credentials_file}\n"
                "Download an OAuth client (Desktop app) from the Google Cloud "
                "console and save it at that path."
            )

        logger.info("Opening browser for Google Drive authorisation...")
        flow = InstalledAppFlow.from_client_secrets_file(
            str(self.credentials_file), self.scopes
        )
        return flow.run_local_server(port=0)
