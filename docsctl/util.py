"""Error classes, config paths, and URL-to-ID extraction."""

import os
import re
from pathlib import Path


class DocsError(Exception):
    """Base error for docsctl operations."""

    error_code = "OPERATION_FAILED"

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class AuthError(DocsError):
    """Authentication error (exit code 2)."""

    error_code = "AUTH_FAILED"

    def __init__(self, message: str, auth_url: str | None = None):
        super().__init__(message, exit_code=2)
        self.auth_url = auth_url


class ApiError(DocsError):
    """Remote API rejected a request (exit code 3)."""

    error_code = "API_ERROR"

    def __init__(self, message: str, status: int | None = None,
                 details: str | None = None):
        super().__init__(message, exit_code=3)
        self.status = status
        self.details = details


class UsageError(DocsError):
    """Bad or missing command input (exit code 4)."""

    error_code = "INVALID_ARGUMENTS"

    def __init__(self, message: str):
        super().__init__(message, exit_code=4)


class CompileError(UsageError):
    """Markdown could not be compiled into document edits."""


class InvalidIndex(CompileError):
    error_code = "INVALID_INDEX"


class MalformedTable(CompileError):
    error_code = "MALFORMED_TABLE"


class UnsupportedBlock(CompileError):
    error_code = "UNSUPPORTED_BLOCK"


CONFIG_DIR = Path(
    os.environ.get("DOCSCTL_CONFIG_DIR", Path.home() / ".config" / "docsctl")
)
TOKEN_PATH = CONFIG_DIR / "token.json"
CREDS_PATH = CONFIG_DIR / "credentials.json"

CHECKBOX_STYLES = ("strikethrough", "native")


def checkbox_style_from_env() -> str:
    """Checkbox policy from DOCSCTL_CHECKBOX_STYLE, defaulting to strikethrough."""
    value = os.environ.get("DOCSCTL_CHECKBOX_STYLE", "").strip().lower()
    if not value:
        return "strikethrough"
    if value not in CHECKBOX_STYLES:
        raise UsageError(
            f"DOCSCTL_CHECKBOX_STYLE must be one of: {', '.join(CHECKBOX_STYLES)}"
        )
    return value


_PATTERNS = [
    re.compile(r"/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
]

_BARE_ID = re.compile(r"^[a-zA-Z0-9_-]+$")


def extract_doc_id(input_str: str) -> str:
    """Extract document ID from a URL or bare ID string.

    Accepts:
    - Full Google Docs URL: https://docs.google.com/document/d/ID/edit
    - Full Drive URL with query: https://drive.google.com/open?id=ID
    - Bare document ID: 1aBcDeFgHiJkLmNoPqRsTuVwXyZ

    Raises ValueError if no valid ID can be extracted.
    """
    input_str = input_str.strip()

    if not input_str:
        raise ValueError("Cannot extract document ID from empty string")

    for pattern in _PATTERNS:
        match = pattern.search(input_str)
        if match:
            return match.group(1)

    if _BARE_ID.match(input_str):
        return input_str

    raise ValueError(f"Cannot extract document ID from: {input_str}")


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units, the unit Docs API indices count."""
    return len(text.encode("utf-16-le")) // 2
