"""CLI tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from refactorguard import __version__
from refactorguard.cli import EXIT_DIFFERENCES, EXIT_ERROR, EXIT_NO_CHANGES, EXIT_SUCCESS, main
from refactorguard.engine._types import ChangedFile
from refactorguard.errors import BackendUnavailable, GitError

runner = CliRunner()

MODULE = """\
def fetch(url):
    return get(url)


def parse(text):
    return text.split()
"""

FETCH_ONLY = """\
def fetch(url):
    return get(url)
"""

PARSE_ONLY = """\
def parse(text):
    # whitespace split
    return text.split()
"""


def _trees(tmp_path: Path, old: dict[str, str], new: dict[str, str]) -> tuple[str, str]:
    for name, files in (("old", old), ("new", new)):
        root = tmp_path / name
        root.mkdir()
        for rel, text in files.items():
            (root / rel).write_text(text, encoding="utf-8")
    return str(tmp_path / "old"), str(tmp_path / "new")


def test_version() -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestCompare:
    def test_pure_split_passes(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": FETCH_ONLY, "text.py": PARSE_ONLY})
        result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_SUCCESS
        assert "VERIFICATION PASSED" in result.output
        assert "MATCHING: 2 definitions" in result.output

    def test_behavior_change_fails(self, tmp_path: Path) -> None:
        changed = PARSE_ONLY.replace("split()", "split(',')")
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": FETCH_ONLY, "text.py": changed})
        result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_DIFFERENCES
        assert "function:parse (body changed)" in result.output
        assert "VERIFICATION FAILED" in result.output

    def test_json_output(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": FETCH_ONLY})
        result = runner.invoke(main, ["compare", old, new, "--format", "json"])
        assert result.exit_code == EXIT_DIFFERENCES
        data = json.loads(result.output)
        assert data["passed"] is False
        assert data["meta"]["source"] == f"{old}..{new}"
        removed = data["languages"][0]["comparison"]["removed"]
        assert [r["name"] for r in removed] == ["function:parse"]

    def test_alias_option(self, tmp_path: Path) -> None:
        renamed = MODULE.replace("def fetch(", "def download(")
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": renamed})
        assert runner.invoke(main, ["compare", old, new]).exit_code == EXIT_DIFFERENCES
        result = runner.invoke(main, ["compare", old, new, "--alias", "function:fetch=function:download"])
        assert result.exit_code == EXIT_SUCCESS
        assert "function:fetch → function:download" in result.output

    def test_alias_file(self, tmp_path: Path) -> None:
        renamed = MODULE.replace("def parse(", "def tokenize(")
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": renamed})
        alias_file = tmp_path / "aliases.json"
        alias_file.write_text(json.dumps({"parse": "tokenize"}), encoding="utf-8")
        result = runner.invoke(main, ["compare", old, new, "--aliases", str(alias_file)])
        assert result.exit_code == EXIT_SUCCESS

    def test_bad_alias_is_usage_error(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.py": "X = 1\n"}, {"a.py": "X = 2\n"})
        result = runner.invoke(main, ["compare", old, new, "--alias", "no-equals-sign"])
        assert result.exit_code == 2
        assert "expected OLD=NEW" in result.output

    def test_alias_file_must_be_object(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.py": "X = 1\n"}, {"a.py": "X = 2\n"})
        alias_file = tmp_path / "aliases.json"
        alias_file.write_text('["parse", "tokenize"]', encoding="utf-8")
        result = runner.invoke(main, ["compare", old, new, "--aliases", str(alias_file)])
        assert result.exit_code == 2
        assert "JSON object" in result.output

    def test_detailed_shows_diff(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.py": "def f():\n    return 1\n"}, {"a.py": "def f():\n    return 2\n"})
        result = runner.invoke(main, ["compare", old, new, "--detailed"])
        assert result.exit_code == EXIT_DIFFERENCES
        assert "+    return 2" in result.output

    def test_jobs(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"net.py": MODULE}, {"net.py": FETCH_ONLY, "text.py": PARSE_ONLY})
        result = runner.invoke(main, ["compare", old, new, "--jobs", "4"])
        assert result.exit_code == EXIT_SUCCESS

    def test_parse_failure_fails(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.py": "def f():\n    return 1\n"}, {"a.py": "def f(:\n    return 1\n"})
        result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_DIFFERENCES
        assert "EXTRACTION FAILURES" in result.output

    def test_latin1_files_pass(self, tmp_path: Path) -> None:
        body = b"def greet():\n    return '\xe9t\xe9'\n"
        for name, header in (("old", b""), ("new", b"# greeting\n")):
            (tmp_path / name).mkdir()
            (tmp_path / name / "greet.py").write_bytes(b"# -*- coding: latin-1 -*-\n" + header + body)
        result = runner.invoke(main, ["compare", str(tmp_path / "old"), str(tmp_path / "new")])
        assert result.exit_code == EXIT_SUCCESS
        assert "EXTRACTION FAILURES" not in result.output

    def test_no_changes(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.py": "X = 1\n", "notes.md": "a"}, {"a.py": "X = 1\n", "notes.md": "b"})
        result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_NO_CHANGES
        assert "No supported files changed." in result.output

    def test_backend_unavailable_exit_code(self, tmp_path: Path) -> None:
        old, new = _trees(tmp_path, {"a.ts": "const a = 1;\n"}, {"a.ts": "const a = 2;\n"})
        with patch(
            "refactorguard.engine.pipeline.get_extractor",
            side_effect=BackendUnavailable("typescript", "grammar missing"),
        ):
            result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_ERROR
        assert "BACKEND UNAVAILABLE" in result.output

    @patch("refactorguard.cli.run_verification")
    def test_unexpected_error(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = RuntimeError("something broke")
        old, new = _trees(tmp_path, {"a.py": "X = 1\n"}, {"a.py": "X = 2\n"})
        result = runner.invoke(main, ["compare", old, new])
        assert result.exit_code == EXIT_ERROR
        assert "Error: something broke" in result.output


class TestVerify:
    @patch("refactorguard.cli.collect_changed_files")
    @patch("refactorguard.cli.find_base_ref")
    def test_default_base(self, mock_base: MagicMock, mock_collect: MagicMock) -> None:
        mock_base.return_value = "origin/main"
        mock_collect.return_value = [
            ChangedFile("net.py", MODULE, FETCH_ONLY),
            ChangedFile("text.py", None, PARSE_ONLY),
        ]
        result = runner.invoke(main, ["verify", "--repo", "/repo", "--format", "json"])
        assert result.exit_code == EXIT_SUCCESS
        mock_base.assert_called_once_with("/repo")
        mock_collect.assert_called_once_with("origin/main", "/repo")
        assert json.loads(result.output)["meta"]["source"] == "origin/main"

    @patch("refactorguard.cli.collect_changed_files")
    @patch("refactorguard.cli.find_base_ref")
    def test_explicit_base(self, mock_base: MagicMock, mock_collect: MagicMock) -> None:
        mock_collect.return_value = [ChangedFile("a.py", "X = 1\n", "X = 2\n")]
        result = runner.invoke(main, ["verify", "--base", "v1.0"])
        assert result.exit_code == EXIT_DIFFERENCES
        mock_base.assert_not_called()
        mock_collect.assert_called_once_with("v1.0", ".")

    @patch("refactorguard.cli.collect_changed_files")
    def test_no_changes(self, mock_collect: MagicMock) -> None:
        mock_collect.return_value = []
        result = runner.invoke(main, ["verify", "--base", "HEAD"])
        assert result.exit_code == EXIT_NO_CHANGES

    @patch("refactorguard.cli.collect_changed_files")
    def test_git_error(self, mock_collect: MagicMock) -> None:
        mock_collect.side_effect = GitError("Not a git repository: /nowhere")
        result = runner.invoke(main, ["verify", "--base", "HEAD", "--repo", "/nowhere"])
        assert result.exit_code == EXIT_ERROR
        assert "Error: Not a git repository: /nowhere" in result.output

    @patch("refactorguard.cli.collect_changed_files")
    def test_external_python(self, mock_collect: MagicMock) -> None:
        mock_collect.return_value = [ChangedFile("a.py", "X = 1\n", "X = 1  # same\n")]
        result = runner.invoke(main, ["verify", "--base", "HEAD", "--python", "/definitely/missing/python"])
        assert result.exit_code == EXIT_ERROR
        assert "interpreter not found" in result.output
