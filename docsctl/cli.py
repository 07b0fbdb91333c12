"""CLI parser, subcommand dispatch, and exception handler."""

import argparse
import json
import os
import sys

from docsctl import __version__
from docsctl.format import format_error, format_success
from docsctl.util import CHECKBOX_STYLES, DocsError, UsageError, utf16_len


class DocsArgumentParser(argparse.ArgumentParser):
    """Custom parser that exits with code 4 on usage errors (not 2)."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        print(format_error(UsageError(message)))
        sys.exit(4)


def _resolve_doc_id(raw: str) -> str:
    """Extract doc ID, wrapping ValueError as UsageError."""
    from docsctl.util import extract_doc_id

    try:
        return extract_doc_id(raw)
    except ValueError as e:
        raise UsageError(str(e))


def _read_input(args) -> dict:
    """Read the command's JSON object from --input FILE or stdin."""
    path = getattr(args, "input", None)
    try:
        if path:
            with open(path, encoding="utf-8") as f:
                raw = f.read()
        else:
            raw = sys.stdin.read()
    except (OSError, UnicodeDecodeError) as e:
        raise UsageError(f"cannot read input: {e}")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise UsageError(f"invalid JSON input: {e}")
    if not isinstance(data, dict):
        raise UsageError("JSON input must be an object")
    return data


def _required(data: dict, *keys: str) -> None:
    missing = [k for k in keys if data.get(k) is None]
    if len(missing) == 1:
        raise UsageError(f"Required field: {missing[0]}")
    if missing:
        raise UsageError(f"Required fields: {', '.join(missing)}")


def _str_field(data: dict, key: str) -> str:
    _required(data, key)
    value = data[key]
    if not isinstance(value, str):
        raise UsageError(f"Field {key} must be a string")
    return value


def _int_field(data: dict, key: str, default: int | None = None) -> int | None:
    """Integer field; floats are truncated like the JSON number they came from."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UsageError(f"Field {key} must be a number")
    return int(value)


def _doc_id_field(data: dict) -> str:
    return _resolve_doc_id(_str_field(data, "document_id"))


def _compile_options(args):
    from docsctl.md import CompileOptions
    from docsctl.util import checkbox_style_from_env

    style = getattr(args, "checkbox_style", None) or checkbox_style_from_env()
    return CompileOptions(checkbox_style=style)


def _log_batch(args, body: dict) -> None:
    if getattr(args, "verbose", False):
        print(
            f"OK compiled {len(body['requests'])} requests",
            file=sys.stderr,
        )


def cmd_auth(args) -> int:
    """Handler for `docsctl auth`."""
    from docsctl.auth import SCOPES, authenticate
    from docsctl.util import TOKEN_PATH

    authenticate(
        no_browser=getattr(args, "no_browser", False),
        code=getattr(args, "code", None),
    )
    print(format_success(
        "auth",
        message="Authorization complete. Token stored successfully.",
        token_path=str(TOKEN_PATH),
        scopes=SCOPES,
    ))
    return 0


def cmd_read(args) -> int:
    """Handler for `docsctl read`."""
    doc_id = _resolve_doc_id(args.doc)

    from docsctl.api.docs import extract_text, get_document

    document = get_document(doc_id)
    print(format_success(
        "read",
        document_id=document.get("documentId", doc_id),
        title=document.get("title"),
        content=extract_text(document.get("body", {}).get("content", [])),
        revision_id=document.get("revisionId"),
    ))
    return 0


def cmd_structure(args) -> int:
    """Handler for `docsctl structure`."""
    doc_id = _resolve_doc_id(args.doc)

    from docsctl.api.docs import get_document, get_structure

    document = get_document(doc_id)
    print(format_success(
        "structure",
        document_id=document.get("documentId", doc_id),
        title=document.get("title"),
        structure=get_structure(document),
    ))
    return 0


def cmd_insert(args) -> int:
    """Handler for `docsctl insert`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    text = _str_field(data, "text")
    index = _int_field(data, "index", default=1)
    if index < 1:
        raise UsageError(f"index must be at least 1, got {index}")

    from docsctl.api.docs import batch_update

    batch_update(doc_id, {"requests": [
        {"insertText": {"location": {"index": index}, "text": text}},
    ]})
    print(format_success(
        "insert",
        document_id=doc_id,
        inserted_at=index,
        text_length=utf16_len(text),
    ))
    return 0


def cmd_append(args) -> int:
    """Handler for `docsctl append`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    text = _str_field(data, "text")

    from docsctl.api.docs import batch_update, get_end_index

    index = get_end_index(doc_id)
    batch_update(doc_id, {"requests": [
        {"insertText": {"location": {"index": index}, "text": text}},
    ]})
    print(format_success(
        "append",
        document_id=doc_id,
        appended_at=index,
        text_length=utf16_len(text),
    ))
    return 0


def cmd_replace(args) -> int:
    """Handler for `docsctl replace`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    find = _str_field(data, "find")
    replace = _str_field(data, "replace")
    match_case = bool(data.get("match_case", False))
    if not find:
        raise UsageError("Field find must not be empty")

    from docsctl.api.docs import replace_all_text

    occurrences = replace_all_text(doc_id, find, replace, match_case=match_case)
    print(format_success(
        "replace",
        document_id=doc_id,
        find=find,
        replace=replace,
        occurrences=occurrences,
    ))
    return 0


def _range_fields(data: dict) -> tuple[int, int]:
    _required(data, "start_index", "end_index")
    start = _int_field(data, "start_index")
    end = _int_field(data, "end_index")
    if start < 1 or end <= start:
        raise UsageError(
            f"invalid range [{start}, {end}): need 1 <= start_index < end_index"
        )
    return start, end


def cmd_format(args) -> int:
    """Handler for `docsctl format`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    start, end = _range_fields(data)

    style = {
        key: bool(data[key])
        for key in ("bold", "italic", "underline")
        if data.get(key) is not None
    }
    if not style:
        raise UsageError("at least one of bold, italic, underline is required")

    from docsctl.api.docs import batch_update

    batch_update(doc_id, {"requests": [{
        "updateTextStyle": {
            "range": {"startIndex": start, "endIndex": end},
            "textStyle": style,
            "fields": ",".join(style),
        }
    }]})
    print(format_success(
        "format",
        document_id=doc_id,
        range={"start": start, "end": end},
        formatting=style,
    ))
    return 0


def cmd_page_break(args) -> int:
    """Handler for `docsctl page-break`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    _required(data, "index")
    index = _int_field(data, "index")
    if index < 1:
        raise UsageError(f"index must be at least 1, got {index}")

    from docsctl.api.docs import batch_update

    batch_update(doc_id, {"requests": [
        {"insertPageBreak": {"location": {"index": index}}},
    ]})
    print(format_success("page_break", document_id=doc_id, inserted_at=index))
    return 0


def cmd_delete(args) -> int:
    """Handler for `docsctl delete`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    start, end = _range_fields(data)

    from docsctl.api.docs import batch_update

    batch_update(doc_id, {"requests": [{
        "deleteContentRange": {
            "range": {"startIndex": start, "endIndex": end},
        }
    }]})
    print(format_success(
        "delete",
        document_id=doc_id,
        deleted_range={"start": start, "end": end},
    ))
    return 0


def cmd_create(args) -> int:
    """Handler for `docsctl create`."""
    data = _read_input(args)
    title = _str_field(data, "title")
    content = data.get("content")
    if content is not None and not isinstance(content, str):
        raise UsageError("Field content must be a string")

    from docsctl.api.docs import batch_update, create_document

    created = create_document(title)
    doc_id = created["documentId"]
    if content:
        batch_update(doc_id, {"requests": [
            {"insertText": {"location": {"index": 1}, "text": content}},
        ]})
    print(format_success(
        "create",
        document_id=doc_id,
        title=created.get("title", title),
        revision_id=created.get("revisionId"),
    ))
    return 0


def cmd_create_from_markdown(args) -> int:
    """Handler for `docsctl create-from-markdown`."""
    data = _read_input(args)
    title = _str_field(data, "title")
    markdown = _str_field(data, "markdown")

    # Compile before touching the network so bad input creates nothing
    from docsctl.md import compile_markdown
    from docsctl.md.batch import emit
    from docsctl.md.compiler import InsertTable

    ops = compile_markdown(markdown, 1, options=_compile_options(args))
    body = emit(ops)
    _log_batch(args, body)

    from docsctl.api.docs import batch_update, create_document

    created = create_document(title)
    doc_id = created["documentId"]
    batch_update(doc_id, body)

    print(format_success(
        "create_from_markdown",
        document_id=doc_id,
        title=created.get("title", title),
        revision_id=created.get("revisionId"),
        requests_applied=len(body["requests"]),
        tables_inserted=sum(isinstance(op, InsertTable) for op in ops),
    ))
    return 0


def cmd_insert_from_markdown(args) -> int:
    """Handler for `docsctl insert-from-markdown`.

    Without an index the markdown is appended; the append position is
    resolved from the current document and the batch is pinned to that
    revision.
    """
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    markdown = _str_field(data, "markdown")
    index = _int_field(data, "index")

    from docsctl.md.batch import emit
    from docsctl.md.blocks import parse_markdown
    from docsctl.md.compiler import InsertText, SetTextStyle, compile_blocks, validate

    blocks = parse_markdown(markdown)
    revision_id = None
    if index is None:
        from docsctl.api.docs import end_index, get_document

        # Reject bad markdown before the document read
        validate(blocks, 1)
        document = get_document(doc_id)
        index = end_index(document)
        revision_id = document.get("revisionId")

    ops = compile_blocks(blocks, index, options=_compile_options(args))
    body = emit(ops, revision_id=revision_id)
    _log_batch(args, body)

    from docsctl.api.docs import batch_update

    batch_update(doc_id, body)
    print(format_success(
        "insert_from_markdown",
        document_id=doc_id,
        inserted_at=index,
        text_length=sum(
            utf16_len(op.text) for op in ops if isinstance(op, InsertText)
        ),
        formats_applied=sum(isinstance(op, SetTextStyle) for op in ops),
        requests_applied=len(body["requests"]),
    ))
    return 0


def cmd_insert_image(args) -> int:
    """Handler for `docsctl insert-image`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    image_url = _str_field(data, "image_url")
    index = _int_field(data, "index")

    size = {}
    for key in ("width", "height"):
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise UsageError(f"Field {key} must be a number")
        size[key] = {"magnitude": value, "unit": "PT"}

    from docsctl.api.docs import batch_update, get_end_index

    if index is None:
        index = get_end_index(doc_id)
    request = {"location": {"index": index}, "uri": image_url}
    if size:
        request["objectSize"] = size

    batch_update(doc_id, {"requests": [{"insertInlineImage": request}]})
    print(format_success(
        "insert_image",
        document_id=doc_id,
        inserted_at=index,
        image_url=image_url,
    ))
    return 0


def _table_from_data(rows: int, cols: int, data: list):
    """Build a Table block of rows x cols plain cells from JSON data."""
    from docsctl.md.blocks import Table
    from docsctl.md.inline import InlineSpan

    grid = []
    for r in range(rows):
        row_data = data[r] if r < len(data) and isinstance(data[r], list) else []
        row = []
        for c in range(cols):
            value = row_data[c] if c < len(row_data) else None
            if value is None:
                text = ""
            elif isinstance(value, str):
                text = value
            else:
                text = json.dumps(value)
            row.append([InlineSpan(text)] if text else [])
        grid.append(row)
    return Table(rows=grid, separator_cols=cols)


def cmd_insert_table(args) -> int:
    """Handler for `docsctl insert-table`."""
    data = _read_input(args)
    doc_id = _doc_id_field(data)
    _required(data, "rows", "cols")
    rows = _int_field(data, "rows")
    cols = _int_field(data, "cols")
    index = _int_field(data, "index")
    cells = data.get("data") or []
    if not isinstance(cells, list):
        raise UsageError("Field data must be an array of rows")

    from docsctl.md.batch import emit
    from docsctl.md.compiler import compile_blocks, validate

    table = _table_from_data(rows, cols, cells)
    validate([table], 1)

    from docsctl.api.docs import batch_update, get_end_index

    if index is None:
        index = get_end_index(doc_id)
    body = emit(compile_blocks([table], index))
    batch_update(doc_id, body)
    print(format_success(
        "insert_table",
        document_id=doc_id,
        rows=rows,
        columns=cols,
        inserted_at=index,
    ))
    return 0


def cmd_compile(args) -> int:
    """Handler for `docsctl compile`: print the batch without sending it."""
    path = args.file
    try:
        if path == "-":
            markdown = sys.stdin.read()
        else:
            with open(path, encoding="utf-8") as f:
                markdown = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise UsageError(f"cannot read file: {e}")

    from docsctl.md import markdown_to_batch

    body = markdown_to_batch(
        markdown, args.index, options=_compile_options(args),
    )
    _log_batch(args, body)
    print(format_success(
        "compile",
        start_index=args.index,
        request_count=len(body["requests"]),
        batch=body,
    ))
    return 0


def build_parser() -> DocsArgumentParser:
    """Build the CLI argument parser with all subcommands."""
    parser = DocsArgumentParser(
        prog="docsctl",
        description="Google Docs command-line client with a Markdown compiler",
        epilog="Mutating commands read a JSON object from stdin (or --input). "
               "Exit codes: 0 success, 1 failure, 2 auth, 3 API, 4 bad input.",
    )
    parser.add_argument(
        "--version", action="version", version=f"docsctl {__version__}",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Report progress on stderr",
    )
    parser.add_argument(
        "--allow-commands",
        default=os.environ.get("DOCSCTL_ALLOW_COMMANDS", ""),
        help="Comma-separated list of allowed subcommands",
    )

    # Shared by commands that read a JSON object
    input_parent = argparse.ArgumentParser(add_help=False)
    input_parent.add_argument(
        "--input", metavar="FILE", help="Read JSON input from FILE instead of stdin",
    )

    # Shared by commands that compile markdown
    md_parent = argparse.ArgumentParser(add_help=False)
    md_parent.add_argument(
        "--checkbox-style", choices=CHECKBOX_STYLES, default=None,
        help="How checked checklist items are shown "
             "(default: $DOCSCTL_CHECKBOX_STYLE or strikethrough)",
    )

    sub = parser.add_subparsers(dest="command")

    # auth
    auth_p = sub.add_parser("auth", help="Authenticate with Google")
    auth_p.add_argument(
        "--no-browser", action="store_true",
        help="Don't open browser, print URL for manual auth",
    )
    auth_p.add_argument(
        "--code", help="Complete authorization with a code from the consent page",
    )
    auth_p.set_defaults(func=cmd_auth)

    # read
    read_p = sub.add_parser("read", help="Read document content")
    read_p.add_argument("doc", help="Document ID or URL")
    read_p.set_defaults(func=cmd_read)

    # structure
    structure_p = sub.add_parser("structure", help="List document headings")
    structure_p.add_argument("doc", help="Document ID or URL")
    structure_p.set_defaults(func=cmd_structure)

    json_commands = [
        ("insert", cmd_insert, "Insert text at an index", False),
        ("append", cmd_append, "Append text to the end of a document", False),
        ("replace", cmd_replace, "Find and replace text", False),
        ("format", cmd_format, "Set bold/italic/underline on a range", False),
        ("page-break", cmd_page_break, "Insert a page break", False),
        ("delete", cmd_delete, "Delete a content range", False),
        ("create", cmd_create, "Create a new document", False),
        ("create-from-markdown", cmd_create_from_markdown,
         "Create a new document from markdown", True),
        ("insert-from-markdown", cmd_insert_from_markdown,
         "Insert formatted markdown into a document", True),
        ("insert-image", cmd_insert_image, "Insert an inline image from a URL", False),
        ("insert-table", cmd_insert_table, "Insert a table", False),
    ]
    for name, func, help_text, uses_markdown in json_commands:
        parents = [input_parent, md_parent] if uses_markdown else [input_parent]
        cmd_p = sub.add_parser(name, parents=parents, help=help_text)
        cmd_p.set_defaults(func=func)

    # compile
    compile_p = sub.add_parser(
        "compile", parents=[md_parent],
        help="Print the batchUpdate body for a markdown file (no API calls)",
    )
    compile_p.add_argument("file", help="Markdown file, or - for stdin")
    compile_p.add_argument(
        "--index", type=int, default=1, help="Insertion index (default: 1)",
    )
    compile_p.set_defaults(func=cmd_compile)

    return parser


def main() -> int:
    """Entry point for the docsctl CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help(sys.stderr)
        return 4

    # Command allowlist enforcement
    allowed = getattr(args, "allow_commands", "")
    if allowed:
        allow_set = {c.strip().lower() for c in allowed.split(",") if c.strip()}
        if args.command.lower() not in allow_set:
            print(format_error(
                UsageError(f"command not allowed: {args.command}"),
                operation=args.command,
            ))
            return 4

    operation = args.command.replace("-", "_")
    try:
        return args.func(args)
    except DocsError as e:
        print(format_error(e, operation=operation))
        return e.exit_code
    except Exception as e:
        print(format_error(
            DocsError(f"unexpected error: {e}"), operation=operation,
        ))
        return 1
