"""Google Docs API v1 wrapper functions with error translation."""

from googleapiclient.errors import HttpError

from docsctl.api import get_docs_service
from docsctl.util import ApiError, AuthError


def _translate_http_error(e: HttpError, doc_id: str) -> None:
    """Translate HttpError into AuthError or ApiError."""
    status = int(e.resp.status)
    details = None
    if e.content:
        details = e.content.decode("utf-8", errors="replace")
    if status == 401:
        raise AuthError("Authentication expired. Run `docsctl auth`.")
    if status == 403:
        raise ApiError(f"Permission denied: {doc_id}", status=status, details=details)
    if status == 404:
        raise ApiError(f"Document not found: {doc_id}", status=status, details=details)
    reason = e.reason or f"HTTP {status}"
    raise ApiError(f"Google API error ({status}): {reason}", status=status, details=details)


def get_document(doc_id: str) -> dict:
    """Fetch the full document structure via documents().get().

    Returns the document JSON including body.content and revisionId.
    """
    try:
        service = get_docs_service()
        return service.documents().get(documentId=doc_id).execute()
    except HttpError as e:
        _translate_http_error(e, doc_id)


def batch_update(doc_id: str, body: dict) -> dict:
    """Send one batchUpdate body. Empty request lists are not sent."""
    if not body.get("requests"):
        return {}
    try:
        service = get_docs_service()
        return (
            service.documents()
            .batchUpdate(documentId=doc_id, body=body)
            .execute()
        )
    except HttpError as e:
        _translate_http_error(e, doc_id)


def create_document(title: str) -> dict:
    """Create an empty document and return the API response."""
    try:
        service = get_docs_service()
        return service.documents().create(body={"title": title}).execute()
    except HttpError as e:
        _translate_http_error(e, title)


def end_index(document: dict) -> int:
    """Index just before the final newline of the body, where appends go."""
    content = document.get("body", {}).get("content", [])
    if not content:
        return 1
    return max(content[-1].get("endIndex", 2) - 1, 1)


def get_end_index(doc_id: str) -> int:
    """Resolve the append position of a document."""
    return end_index(get_document(doc_id))


def _extract_paragraph_text(paragraph: dict) -> str:
    parts = []
    for pe in paragraph.get("elements", []):
        text_run = pe.get("textRun")
        if text_run is None:
            continue
        parts.append(text_run.get("content", ""))
    return "".join(parts)


def extract_text(content: list[dict]) -> str:
    """Extract text from body content.

    Paragraphs keep their trailing newline; table rows are rendered as
    " | "-joined cells, one row per line.
    """
    blocks = []
    for element in content:
        if "paragraph" in element:
            blocks.append(_extract_paragraph_text(element["paragraph"]))
        elif "table" in element:
            rows = []
            for row in element["table"].get("tableRows", []):
                cells = [
                    extract_text(cell.get("content", [])).strip()
                    for cell in row.get("tableCells", [])
                ]
                rows.append(" | ".join(cells))
            blocks.append("\n".join(rows) + "\n")
    return "".join(blocks)


def get_structure(document: dict) -> list[dict]:
    """List the document's headings with level, text, and index range."""
    structure = []
    for element in document.get("body", {}).get("content", []):
        paragraph = element.get("paragraph")
        if paragraph is None:
            continue
        style = paragraph.get("paragraphStyle", {}).get("namedStyleType", "")
        if not style.startswith("HEADING_"):
            continue
        try:
            level = int(style.rsplit("_", 1)[1])
        except ValueError:
            level = 0
        structure.append({
            "level": level,
            "text": _extract_paragraph_text(paragraph).rstrip("\n"),
            "start_index": element.get("startIndex"),
            "end_index": element.get("endIndex"),
        })
    return structure


def replace_all_text(
    doc_id: str,
    old_text: str,
    new_text: str,
    match_case: bool = False,
) -> int:
    """Replace text in a document using replaceAllText.

    Returns:
        Number of occurrences changed (from API response).
    """
    body = {
        "requests": [
            {
                "replaceAllText": {
                    "containsText": {
                        "text": old_text,
                        "matchCase": match_case,
                    },
                    "replaceText": new_text,
                }
            }
        ]
    }
    result = batch_update(doc_id, body)

    replies = result.get("replies", [])
    if replies:
        return replies[0].get("replaceAllText", {}).get(
            "occurrencesChanged", 0
        )
    return 0
