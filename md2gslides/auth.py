"""Google API credentials and service construction.

Order of preference:

1. Service-account JSON (non-interactive CI / servers), from an explicit
   path or ``GOOGLE_SLIDES_CREDENTIALS``
2. Cached user OAuth token (``~/.md2googleslides/credentials.json``)
3. Interactive OAuth flow with ``~/.md2googleslides/client_id.json``
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .errors import SlideGenerationError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/presentations",
    "https://www.googleapis.com/auth/drive",
]


def config_dir() -> Path:
    return Path(os.getenv("MD2GSLIDES_HOME", "~/.md2googleslides")).expanduser()


def _load_user_credentials(token_path: Path) -> Optional[Credentials]:
    if not token_path.exists():
        return None
    try:
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except ValueError as exc:
        logger.warning("Ignoring unreadable token %s (%s).", token_path, exc)
        return None
    if creds.expired and creds.refresh_token:
        creds.refresh(Request())
        token_path.write_text(creds.to_json())
    return creds


def get_credentials(credentials_path: Optional[str] = None, *, open_browser: bool = True):
    """Return Google credentials able to edit presentations.

    Raises:
        SlideGenerationError: If no way to authenticate is configured
    """
    # ------------------------------------------------------------------
    # 1. Service-account credentials (headless, preferred on CI)
    # ------------------------------------------------------------------
    sa_path = credentials_path or os.getenv("GOOGLE_SLIDES_CREDENTIALS")
    if sa_path:
        sa_path = os.path.expanduser(sa_path)
        if not os.path.exists(sa_path):
            raise SlideGenerationError(f"Credentials file {sa_path} not found")
        logger.debug("Using service account %s", sa_path)
        return service_account.Credentials.from_service_account_file(sa_path, scopes=SCOPES)

    # ------------------------------------------------------------------
    # 2. User OAuth (interactive on first run, then cached)
    # ------------------------------------------------------------------
    home = config_dir()
    token_path = home / "credentials.json"
    client_secret_path = home / "client_id.json"

    creds = _load_user_credentials(token_path)
    if creds is not None and creds.valid:
        return creds

    if not client_secret_path.exists():
        raise SlideGenerationError(
            f"No credentials found. Save an OAuth client id to {client_secret_path} "
            "or point GOOGLE_SLIDES_CREDENTIALS at a service-account key."
        )

    logger.info("Running interactive OAuth flow – authorize access in your browser …")
    flow = InstalledAppFlow.from_client_secrets_file(str(client_secret_path), SCOPES)
    creds = flow.run_local_server(port=0, open_browser=open_browser)
    home.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    return creds


def build_services(credentials):
    """``(slides, drive)`` API clients for *credentials*."""
    slides = build("slides", "v1", credentials=credentials, cache_discovery=False)
    drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
    return slides, drive
