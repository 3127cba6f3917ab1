"""
Google OAuth client configuration and per-user credential storage.
"""

import base64
import binascii
import json
import logging
from pathlib import Path

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from core.config import (
    GOOGLE_CREDENTIALS_BASE64,
    GOOGLE_CREDENTIALS_FILE,
    GOOGLE_SCOPES,
    OAUTH_REDIRECT_URI,
)

logger = logging.getLogger(__name__)

TOKEN_FILENAME = "token.json"
VERIFIER_FILENAME = "oauth_verifier.txt"


def load_client_config() -> dict | None:
    """
    Load the OAuth client secrets.

    Production supplies them base64-encoded in GOOGLE_CREDENTIALS_BASE64;
    development falls back to the credentials.json file.
    """
    if GOOGLE_CREDENTIALS_BASE64:
        try:
            return json.loads(base64.b64decode(GOOGLE_CREDENTIALS_BASE64))
        except (binascii.Error, ValueError) as e:
            logger.error("GOOGLE_CREDENTIALS_BASE64 is not valid base64 JSON: %s", e)
            return None

    if GOOGLE_CREDENTIALS_FILE.exists():
        return json.loads(GOOGLE_CREDENTIALS_FILE.read_text(encoding="utf-8"))

    logger.warning("Google client credentials not found at %s", GOOGLE_CREDENTIALS_FILE)
    return None


def build_flow(
    client_config: dict,
    redirect_uri: str = OAUTH_REDIRECT_URI,
    code_verifier: str | None = None,
) -> Flow:
    """
    Build an OAuth flow.

    Pass the `code_verifier` saved when the authorization URL was issued;
    without one a fresh PKCE verifier is generated for a new URL.
    """
    return Flow.from_client_config(
        client_config,
        scopes=GOOGLE_SCOPES,
        redirect_uri=redirect_uri,
        code_verifier=code_verifier,
        autogenerate_code_verifier=code_verifier is None,
    )


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def token_path(tokens_location: str | Path) -> Path:
    return Path(tokens_location) / TOKEN_FILENAME


def load_credentials(tokens_location: str | Path) -> Credentials | None:
    """Read stored credentials; None if missing or unreadable."""
    path = token_path(tokens_location)
    if not path.exists():
        return None
    try:
        return Credentials.from_authorized_user_file(str(path), GOOGLE_SCOPES)
    except (ValueError, OSError) as e:
        logger.warning("Could not read stored credentials at %s: %s", path, e)
        return None


def save_credentials(tokens_location: str | Path, credentials: Credentials) -> None:
    _write_atomic(token_path(tokens_location), credentials.to_json())


def delete_credentials(tokens_location: str | Path) -> None:
    token_path(tokens_location).unlink(missing_ok=True)


# PKCE verifier of the pending OAuth flow, kept until the callback arrives


def verifier_path(tokens_location: str | Path) -> Path:
    return Path(tokens_location) / VERIFIER_FILENAME


def save_code_verifier(tokens_location: str | Path, code_verifier: str) -> None:
    _write_atomic(verifier_path(tokens_location), code_verifier)


def load_code_verifier(tokens_location: str | Path) -> str | None:
    path = verifier_path(tokens_location)
    try:
        return path.read_text(encoding="utf-8").strip() or None
    except FileNotFoundError:
        return None


def delete_code_verifier(tokens_location: str | Path) -> None:
    verifier_path(tokens_location).unlink(missing_ok=True)
