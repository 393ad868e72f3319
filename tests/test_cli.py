import json
from unittest.mock import MagicMock

from typer.testing import CliRunner

import main
from main import app
from store import BookStore

runner = CliRunner()


def test_list_books(books_file):
    result = runner.invoke(app, ["list", "--data-file", books_file])
    assert result.exit_code == 0
    assert "Things Fall Apart" in result.stdout
    assert "Dante Alighieri" in result.stdout


def test_list_no_books(empty_books_file):
    result = runner.invoke(app, ["list", "--data-file", empty_books_file])
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_list_unreadable_file(tmp_path):
    bad = tmp_path / "books.json"
    bad.write_text(json.dumps({"not": "a list"}), encoding="utf-8")
    result = runner.invoke(app, ["list", "--data-file", str(bad)])
    assert result.exit_code == 1
    assert "Error:" in result.stdout


def test_serve_default_port(monkeypatch, books_file):
    run_mock = MagicMock()
    monkeypatch.setattr(main.uvicorn, "run", run_mock)

    result = runner.invoke(app, ["serve", "--data-file", books_file])
    assert result.exit_code == 0
    run_mock.assert_called_once()
    assert run_mock.call_args.kwargs["port"] == 8000
    served_app = run_mock.call_args.args[0]
    assert isinstance(served_app.state.store, BookStore)
    assert served_app.state.store.path == books_file


def test_serve_port_override(monkeypatch, books_file):
    run_mock = MagicMock()
    monkeypatch.setattr(main.uvicorn, "run", run_mock)

    result = runner.invoke(app, ["serve", "--port", "9123", "--host", "0.0.0.0", "--data-file", books_file])
    assert result.exit_code == 0
    assert run_mock.call_args.kwargs["port"] == 9123
    assert run_mock.call_args.kwargs["host"] == "0.0.0.0"
    assert "9123" in result.stdout
