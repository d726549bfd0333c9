"""
Tests for the CLI entry point.
"""

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from actionforce.api.cli.main import app


class TestMainCLI:
    """Test the main CLI application."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_cli_help(self):
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "dispatch" in result.stdout
        assert "scan" in result.stdout

    def test_cli_version(self):
        result = self.runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Actionforce version" in result.stdout


class TestScanCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_scan_lists_planned_commands(self):
        message = "writeFile a.js ```js 1 ```\nmetaAction(execute_and_wait)"

        result = self.runner.invoke(app, ["scan"], input=message)

        assert result.exit_code == 0
        assert "writeFile" in result.stdout
        assert "a.js" in result.stdout
        assert "metaAction" in result.stdout

    def test_scan_without_commands(self):
        result = self.runner.invoke(app, ["scan"], input="Just prose.")

        assert result.exit_code == 0
        assert "No commands found" in result.stdout

    def test_scan_missing_file(self, tmp_path):
        result = self.runner.invoke(app, ["scan", str(tmp_path / "nope.md")])

        assert result.exit_code != 0


class TestDispatchCommand:
    def setup_method(self):
        self.runner = CliRunner()

    @patch("actionforce.api.cli.commands.dispatch.DispatcherFactory")
    def test_dispatch_uses_profile_and_prints_envelope(self, mock_factory_cls):
        dispatcher = MagicMock()
        dispatcher.handle = AsyncMock(return_value={"type": "CONTINUE"})
        mock_factory_cls.return_value.create_dispatcher.return_value = dispatcher

        result = self.runner.invoke(
            app,
            ["--profile", "prod", "--config-dir", "cfg", "dispatch", "-o", "json"],
            input="no commands here",
        )

        assert result.exit_code == 0
        assert "CONTINUE" in result.stdout
        mock_factory_cls.assert_called_once_with(config_dir="cfg")
        mock_factory_cls.return_value.create_dispatcher.assert_called_once_with(profile="prod")
        event = dispatcher.handle.await_args.args[0]
        assert event.last_content == "no commands here"

    @patch("actionforce.api.cli.commands.dispatch.DispatcherFactory")
    def test_dispatch_exits_nonzero_on_error_envelope(self, mock_factory_cls):
        dispatcher = MagicMock()
        dispatcher.handle = AsyncMock(
            return_value={"error": "No valid blocks or commands found", "_meta_actions": []}
        )
        mock_factory_cls.return_value.create_dispatcher.return_value = dispatcher

        result = self.runner.invoke(app, ["dispatch", "-o", "json"], input="``javascript ``")

        assert result.exit_code == 1
        assert "No valid blocks" in result.stdout

    @patch("actionforce.api.cli.commands.dispatch.DispatcherFactory")
    def test_dispatch_reads_full_event(self, mock_factory_cls):
        dispatcher = MagicMock()
        dispatcher.handle = AsyncMock(return_value={"type": "CONTINUE"})
        mock_factory_cls.return_value.create_dispatcher.return_value = dispatcher
        event_json = (
            '{"payload": {"chatId": "c-9", "messages": '
            '[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "ok"}]}}'
        )

        result = self.runner.invoke(app, ["dispatch", "--event"], input=event_json)

        assert result.exit_code == 0
        event = dispatcher.handle.await_args.args[0]
        assert event.chat_id == "c-9"
        assert event.message_count == 2

    def test_dispatch_rejects_invalid_event_json(self):
        result = self.runner.invoke(app, ["dispatch", "--event"], input="not json")

        assert result.exit_code != 0
