"""Tests for the actorgen command line."""
import json
import tempfile
from pathlib import Path

from actorgen.cli import main

BROKEN = "from actorgen import gen_crud, persisted\n\n\n@gen_crud\nclass Broken:\n    owner = persisted()\n"


def _write(directory, name, text):
    path = Path(directory) / name
    path.write_text(text, encoding="utf-8")
    return path


def test_schema_prints_json_report(todo_source, capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        path = _write(temp_dir, "todo.py", todo_source)
        assert main(["schema", str(path)]) == 0

    report = json.loads(capsys.readouterr().out)
    [declaration] = report["declarations"]
    assert declaration["name"] == "Todo"
    assert declaration["actor"] == "TodoActor"
    assert declaration["operations"] == ["create", "update", "delete", "list", "observe"]
    assert [f["name"] for f in declaration["fields"]] == ["_id", "name", "owner", "status"]
    assert declaration["fields"][0]["primary_key"] is True
    assert report["diagnostics"] == []


def test_schema_reports_errors(capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        path = _write(temp_dir, "broken.py", BROKEN)
        assert main(["schema", str(path)]) == 1

    report = json.loads(capsys.readouterr().out)
    assert report["declarations"] == []
    assert report["diagnostics"][0]["severity"] == "error"
    assert report["diagnostics"][0]["member"] == "owner"


def test_expand_to_stdout(todo_source, capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        path = _write(temp_dir, "todo.py", todo_source)
        assert main(["--actor-suffix", "Store", "expand", str(path)]) == 0

    out = capsys.readouterr().out
    assert "class TodoStore(ModelActor):" in out


def test_expand_to_output_directory(todo_source):
    with tempfile.TemporaryDirectory() as temp_dir:
        first = _write(temp_dir, "todo.py", todo_source)
        second = _write(temp_dir, "tags.py", "x = 1\n")
        out_dir = Path(temp_dir) / "out"

        assert main(["expand", str(first), str(second), "-o", str(out_dir)]) == 0
        assert "class TodoActor(ModelActor):" in (out_dir / "todo.py").read_text(encoding="utf-8")
        assert (out_dir / "tags.py").read_text(encoding="utf-8") == "x = 1\n"


def test_expand_several_files_needs_output(todo_source, capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        first = _write(temp_dir, "a.py", todo_source)
        second = _write(temp_dir, "b.py", todo_source)
        assert main(["expand", str(first), str(second)]) == 2
    assert "--output" in capsys.readouterr().err


def test_check_reports_diagnostics_without_writing(capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        path = _write(temp_dir, "broken.py", BROKEN)
        assert main(["expand", "--check", str(path)]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Broken.owner" in captured.err


def test_expand_keeps_same_named_modules_apart():
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        (temp_path / "a").mkdir()
        (temp_path / "b").mkdir()
        first = _write(temp_path / "a", "models.py", "A = 1\n")
        second = _write(temp_path / "b", "models.py", "B = 2\n")
        out_dir = temp_path / "out"

        assert main(["expand", str(first), str(second), "-o", str(out_dir)]) == 0
        assert (out_dir / "a" / "models.py").read_text(encoding="utf-8") == "A = 1\n"
        assert (out_dir / "b" / "models.py").read_text(encoding="utf-8") == "B = 2\n"


def test_syntax_error_is_a_diagnostic_and_the_batch_continues(todo_source, capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        bad = _write(temp_dir, "bad.py", "x = 1\nclass (:\n")
        good = _write(temp_dir, "todo.py", todo_source)
        out_dir = Path(temp_dir) / "out"

        assert main(["expand", str(bad), str(good), "-o", str(out_dir)]) == 1
        assert (out_dir / "todo.py").exists()
        assert not (out_dir / "bad.py").exists()

    assert f"{bad}:2: error: <module>:" in capsys.readouterr().err


def test_schema_of_unparsable_file(capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        path = _write(temp_dir, "bad.py", "class (:\n")
        assert main(["schema", str(path)]) == 1

    report = json.loads(capsys.readouterr().out)
    assert report["diagnostics"][0]["line"] == 1
