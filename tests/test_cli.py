"""Tests for docsctl.cli: argument parsing, exit codes, and JSON errors."""

import json
import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parent.parent)


def run_docsctl(*args: str, stdin: str = "", **env) -> subprocess.CompletedProcess:
    """Run docsctl as a subprocess and return the result."""
    full_env = os.environ.copy()
    for key in ("DOCSCTL_CHECKBOX_STYLE", "DOCSCTL_ALLOW_COMMANDS"):
        full_env.pop(key, None)
    full_env.update(env)
    return subprocess.run(
        [sys.executable, "-m", "docsctl", *args],
        capture_output=True,
        text=True,
        input=stdin,
        env=full_env,
        cwd=REPO_ROOT,
    )


class TestExitCode4OnUsageErrors:
    def test_no_command(self):
        assert run_docsctl().returncode == 4

    def test_bad_flag(self):
        result = run_docsctl("--bad-flag")
        assert result.returncode == 4
        assert json.loads(result.stdout)["error_code"] == "INVALID_ARGUMENTS"

    def test_missing_required_arg(self):
        assert run_docsctl("read").returncode == 4

    def test_bad_checkbox_style_choice(self):
        assert run_docsctl("compile", "-", "--checkbox-style", "emoji").returncode == 4

    def test_invalid_json_input(self):
        result = run_docsctl("insert", stdin="not json")
        assert result.returncode == 4
        out = json.loads(result.stdout)
        assert out["status"] == "error"
        assert out["operation"] == "insert"

    def test_missing_field(self):
        result = run_docsctl("insert", stdin='{"text": "hi"}')
        assert result.returncode == 4
        assert "document_id" in json.loads(result.stdout)["message"]


def test_version():
    result = run_docsctl("--version")
    assert result.returncode == 0
    assert result.stdout.startswith("docsctl ")


class TestCompile:
    def test_prints_batch(self):
        result = run_docsctl("compile", "-", stdin="# Title\n\n- one\n- two")
        assert result.returncode == 0
        out = json.loads(result.stdout)
        assert out["status"] == "success"
        assert out["operation"] == "compile"
        assert out["request_count"] == 5
        assert out["batch"]["requests"][0] == {
            "insertText": {"location": {"index": 1}, "text": "Title\n"},
        }

    def test_index_option(self, tmp_path):
        md = tmp_path / "doc.md"
        md.write_text("hello")
        result = run_docsctl("compile", str(md), "--index", "42")
        out = json.loads(result.stdout)
        assert out["start_index"] == 42
        assert out["batch"]["requests"][0]["insertText"]["location"]["index"] == 42

    def test_missing_file(self, tmp_path):
        result = run_docsctl("compile", str(tmp_path / "missing.md"))
        assert result.returncode == 4

    def test_undecodable_file(self, tmp_path):
        md = tmp_path / "doc.md"
        md.write_bytes(b"\xff\xfe# x")
        result = run_docsctl("compile", str(md))
        assert result.returncode == 4
        assert json.loads(result.stdout)["error_code"] == "INVALID_ARGUMENTS"

    def test_invalid_index(self):
        result = run_docsctl("compile", "-", "--index", "0", stdin="x")
        assert result.returncode == 4
        assert json.loads(result.stdout)["error_code"] == "INVALID_INDEX"

    def test_nested_list(self):
        result = run_docsctl("compile", "-", stdin="- a\n  - b")
        assert result.returncode == 4
        assert json.loads(result.stdout)["error_code"] == "UNSUPPORTED_BLOCK"

    def test_malformed_table(self):
        result = run_docsctl("compile", "-", stdin="| A | B |\n|---|")
        assert json.loads(result.stdout)["error_code"] == "MALFORMED_TABLE"

    def test_checkbox_style_from_env(self):
        result = run_docsctl(
            "compile", "-", stdin="- [x] done",
            DOCSCTL_CHECKBOX_STYLE="native",
        )
        requests = json.loads(result.stdout)["batch"]["requests"]
        assert not any("updateTextStyle" in r for r in requests)

    def test_verbose_reports_on_stderr(self):
        result = run_docsctl("--verbose", "compile", "-", stdin="hi")
        assert "OK compiled 1 requests" in result.stderr


class TestAllowlist:
    def test_blocked_command(self):
        result = run_docsctl("--allow-commands", "read", "compile", "-", stdin="x")
        assert result.returncode == 4
        assert "not allowed" in json.loads(result.stdout)["message"]

    def test_allowed_command(self):
        result = run_docsctl(
            "compile", "-", stdin="x", DOCSCTL_ALLOW_COMMANDS="read, compile",
        )
        assert result.returncode == 0


def test_markdown_errors_reported_before_auth(tmp_path):
    result = run_docsctl(
        "create-from-markdown",
        stdin=json.dumps({"title": "T", "markdown": "| A | B |\n|---|"}),
        DOCSCTL_CONFIG_DIR=str(tmp_path),
    )
    assert result.returncode == 4
    out = json.loads(result.stdout)
    assert out["error_code"] == "MALFORMED_TABLE"
    assert out["operation"] == "create_from_markdown"
