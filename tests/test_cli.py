"""
Test suite for the main CLI interface.
"""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from things_api.data_models import BatchResult, CreateResult
from things_api.errors import EncodingError

# Import the main CLI app
from thingscli import app

runner = CliRunner()


@pytest.fixture
def client():
    mock_client = MagicMock()
    with patch("commands.common.get_client", return_value=mock_client):
        yield mock_client


class TestCLI:
    """Test cases for the main CLI application."""

    def test_cli_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Things3 CLI" in result.stdout

    def test_cli_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "thingscli" in result.stdout

    def test_diagnostics_command_exists(self):
        result = runner.invoke(app, ["diagnostics", "--help"])
        assert result.exit_code == 0
        assert "health check" in result.stdout.lower()

    @pytest.mark.parametrize("command", ["list", "add", "update", "tag", "bulk-move", "logbook"])
    def test_command_exists(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    @patch("thingscli.subprocess.run")
    def test_things_process_check(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=1)
        result = runner.invoke(app, ["diagnostics"])
        assert result.exit_code == 0
        assert "Things3 running" in result.stdout
        assert mock_subprocess.call_args[0][0] == ["pgrep", "-x", "Things3"]


class TestTodoCommands:
    def test_complete_many(self, client):
        client.complete_todos.return_value = BatchResult(success_count=2)

        result = runner.invoke(app, ["complete", "a", "b"])

        assert result.exit_code == 0
        client.complete_todos.assert_called_once_with(["a", "b"])
        assert '"count": 2' in result.stdout

    def test_add_passes_options(self, client):
        client.create_todo.return_value = CreateResult(True, "NEW1")

        result = runner.invoke(
            app,
            ["add", "--title", "Buy milk", "--tags", "errand, home", "-c", "one", "-c", "two", "--when", "today"],
        )

        assert result.exit_code == 0
        kwargs = client.create_todo.call_args.kwargs
        assert kwargs["title"] == "Buy milk"
        assert kwargs["tags"] == ["errand", "home"]
        assert kwargs["checklist_items"] == ["one", "two"]
        assert kwargs["when"] == "today"
        assert '"NEW1"' in result.stdout

    def test_list_pages_with_offset(self, client):
        client.list_todos.return_value = []

        result = runner.invoke(app, ["list", "--offset", "20", "--limit", "10"])

        assert result.exit_code == 0
        kwargs = client.list_todos.call_args.kwargs
        assert (kwargs["offset"], kwargs["limit"]) == (20, 10)

    def test_update_set_and_clear(self, client):
        client.update_todo.return_value = BatchResult(success_count=1)

        result = runner.invoke(app, ["update", "T1", "--title", "New", "--clear", "when", "--clear", "list-id"])

        assert result.exit_code == 0
        client.update_todo.assert_called_once_with("T1", title="New", when=None, list_id=None)

    def test_update_set_and_clear_same_field_fails(self, client):
        result = runner.invoke(app, ["update", "T1", "--when", "today", "--clear", "when"])
        assert result.exit_code == 1
        client.update_todo.assert_not_called()

    def test_things_errors_exit_1(self, client):
        client.delete_todos.side_effect = EncodingError("bad id")
        result = runner.invoke(app, ["delete", "x"])
        assert result.exit_code == 1


class TestOtherCommands:
    def test_untag(self, client):
        client.remove_tags.return_value = BatchResult(success_count=1)
        result = runner.invoke(app, ["untag", "T1", "P1", "--tags", "home"])
        assert result.exit_code == 0
        client.remove_tags.assert_called_once_with(["T1", "P1"], ["home"])

    def test_bulk_move_needs_destination(self, client):
        result = runner.invoke(app, ["bulk-move", "a"])
        assert result.exit_code == 1
        client.bulk_move.assert_not_called()

    def test_bulk_move_to_inbox(self, client):
        client.bulk_move.return_value = BatchResult(success_count=1)
        result = runner.invoke(app, ["bulk-move", "a", "--inbox"])
        assert result.exit_code == 0
        client.bulk_move.assert_called_once_with(["a"], project_id=None, area_id=None)

    def test_bulk_set_dates_clear(self, client):
        from things_api import UNSET

        client.bulk_update_dates.return_value = BatchResult(success_count=1)
        result = runner.invoke(app, ["bulk-set-dates", "a", "--clear-deadline"])
        assert result.exit_code == 0
        client.bulk_update_dates.assert_called_once_with(["a"], when=UNSET, deadline=None)

    def test_add_project_headings(self, client):
        client.create_project.return_value = CreateResult(True, "P1")
        result = runner.invoke(app, ["add-project", "-t", "Trip", "--heading", "Before", "--heading", "After"])
        assert result.exit_code == 0
        assert client.create_project.call_args.kwargs["headings"] == ["Before", "After"]

    def test_logbook(self, client):
        client.search_logbook.return_value = []
        result = runner.invoke(app, ["logbook", "--from", "2025-06-01", "-n", "5"])
        assert result.exit_code == 0
        client.search_logbook.assert_called_once_with(
            search_text=None, from_date="2025-06-01", to_date=None, limit=5
        )
