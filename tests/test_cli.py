"""
Smoke tests for the llmcourse command line.
"""

import pytest

from llmcourse.classroom import SQLiteKeyValueStore
from llmcourse.cli import build_parser, main
from llmcourse.schemas import PROGRESS_STORAGE_KEY


@pytest.fixture
def db(tmp_path):
    return tmp_path / "progress.db"


def _run(db, *args) -> int:
    return main(["--db", str(db), *args])


class TestParser:
    """Test argument parsing."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_invalid_variant(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["init", "--variant", "C"])

    def test_complete_arguments(self):
        args = build_parser().parse_args(["complete", "2", "core_tokenization"])
        assert args.module_id == 2
        assert args.section_id == "core_tokenization"


class TestCommands:
    """Test commands against a temporary database."""

    def test_init_and_status(self, db, capsys):
        assert _run(db, "init", "--variant", "A") == 0
        assert _run(db, "status") == 0
        out = capsys.readouterr().out
        assert "Progress initialized." in out
        assert "Overall completion: 0%" in out
        assert "Module 1: Introduction to LLMs (0/5, 0%) [in-progress]" in out
        assert "[locked]" in out

    def test_status_without_progress(self, db, capsys):
        assert _run(db, "status") == 1
        assert "No progress found" in capsys.readouterr().out

    def test_complete_and_award(self, db, capsys):
        _run(db, "init", "--variant", "B")
        assert _run(db, "complete", "1", "intro_what_are_llms") == 0
        assert _run(db, "complete-module", "1") == 0
        assert _run(db, "award") == 0
        assert _run(db, "status") == 0
        out = capsys.readouterr().out
        assert "Unlocked: First Steps" in out
        assert "Overall completion: 33%" in out
        assert "- First Steps" in out

    def test_complete_module_unknown(self, db, capsys):
        _run(db, "init", "--variant", "A")
        assert _run(db, "complete-module", "4") == 1
        assert "module_not_found" in capsys.readouterr().out

    def test_unlock_unknown(self, db, capsys):
        _run(db, "init", "--variant", "A")
        assert _run(db, "unlock", "bogus") == 1
        assert "unknown_achievement" in capsys.readouterr().out

    def test_sessions(self, db):
        _run(db, "init", "--variant", "A")
        assert _run(db, "session", "start") == 0
        assert _run(db, "session", "start") == 1
        assert _run(db, "session", "end") == 0

    def test_resume(self, db, capsys):
        assert _run(db, "resume") == 0
        assert "Start your learning journey" in capsys.readouterr().out

        _run(db, "init", "--variant", "A")
        _run(db, "complete-module", "1")
        assert _run(db, "resume") == 0
        assert "Continue with Core Mechanics" in capsys.readouterr().out

    def test_validate(self, db, capsys):
        assert _run(db, "validate") == 0
        assert "No progress stored." in capsys.readouterr().out

        _run(db, "init", "--variant", "A")
        assert _run(db, "validate") == 0
        assert "Stored progress is valid." in capsys.readouterr().out

    def test_validate_corrupt(self, db, capsys):
        SQLiteKeyValueStore(db).set_item(PROGRESS_STORAGE_KEY, "{not json")
        assert _run(db, "validate") == 1
        assert "not valid JSON" in capsys.readouterr().out

    def test_validate_invalid(self, db, capsys):
        SQLiteKeyValueStore(db).set_item(PROGRESS_STORAGE_KEY, '{"learnerVariant": "Z"}')
        assert _run(db, "validate") == 1
        assert "learnerVariant must be one of: A, B" in capsys.readouterr().out

    def test_reset(self, db, capsys):
        _run(db, "init", "--variant", "A")
        assert _run(db, "reset", "--yes") == 0
        assert _run(db, "status") == 1
        assert "Progress reset." in capsys.readouterr().out

    def test_reset_aborted(self, db, capsys, monkeypatch):
        _run(db, "init", "--variant", "A")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert _run(db, "reset") == 1
        assert "Aborted." in capsys.readouterr().out
        assert _run(db, "status") == 0
