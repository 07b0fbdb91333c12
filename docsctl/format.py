"""JSON output contract helpers."""

import json

from docsctl.util import ApiError, AuthError, DocsError


def format_json(**kwargs) -> str:
    """Serialize keyword args as one JSON object."""
    return json.dumps(kwargs, indent=2, ensure_ascii=False)


def format_success(operation: str, **fields) -> str:
    """Format a success payload: status, operation, then command fields."""
    return format_json(status="success", operation=operation, **fields)


def format_error(error: Exception, operation: str | None = None) -> str:
    """Format an error payload for stdout."""
    payload: dict = {"status": "error"}
    if isinstance(error, DocsError):
        payload["error_code"] = error.error_code
    else:
        payload["error_code"] = "OPERATION_FAILED"
    if operation:
        payload["operation"] = operation
    payload["message"] = str(error)
    if isinstance(error, AuthError) and error.auth_url:
        payload["auth_url"] = error.auth_url
    if isinstance(error, ApiError):
        if error.status is not None:
            payload["http_status"] = error.status
        if error.details:
            payload["details"] = error.details
    return format_json(**payload)
