"""
Unit Tests for the Command Executor

Uses AsyncMock backends to verify per-kind behavior, early stopping and
result recording without any I/O.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from actionforce.core.domain.commands import (
    CommandArgument,
    CommandKind,
    NamedCommand,
    ScriptCommand,
    WriteFileCommand,
)
from actionforce.core.domain.directive import (
    REQUEST_CHAT_MODEL,
    REQUEST_CHAT_MODEL_EXCEEDED,
    ContinuationDirective,
)
from actionforce.core.domain.errors import BackendError
from actionforce.core.domain.models import DispatchEvent, RunState
from actionforce.core.executor import CommandExecutor, interpolate_secrets, map_search_items


def named(kind: CommandKind, value, structured: bool = False) -> NamedCommand:
    argument = CommandArgument.structured(value) if structured else CommandArgument.text(value)
    return NamedCommand(name=kind, argument=argument)


@pytest.fixture
def mock_site():
    site = AsyncMock()
    site.write_file.return_value = 200
    site.notify_job_finished.return_value = 200
    return site


@pytest.fixture
def mock_host():
    host = AsyncMock()
    host.encrypt.return_value = "ciphertext"
    host.update_chat.return_value = {"ok": True}
    host.google_search.return_value = []
    host.webpage_to_text.return_value = None
    return host


@pytest.fixture
def mock_runner():
    runner = AsyncMock()
    runner.run.return_value = {"status": "ok"}
    return runner


@pytest.fixture
def executor(mock_site, mock_host, mock_runner):
    return CommandExecutor(site=mock_site, host=mock_host, script_runner=mock_runner)


@pytest.fixture
def event():
    return DispatchEvent.from_text("irrelevant", chat_id="chat-1")


@pytest.fixture
def directive():
    return ContinuationDirective.for_conversation(1)


async def run(executor, commands, event, directive, state=None):
    state = state or RunState()
    return await executor.execute(commands, event, state, directive)


class TestWriteFile:
    @pytest.mark.asyncio
    async def test_write_file_success(self, executor, mock_site, event, directive):
        command = WriteFileCommand(path="a.js", language="javascript", content="console.log(1)")

        state = await run(executor, [command], event, directive)

        mock_site.write_file.assert_awaited_once_with("a.js", "console.log(1)")
        assert state.results_as_dicts() == [
            {"type": "writeFile", "path": "a.js", "language": "javascript", "success": True}
        ]

    @pytest.mark.asyncio
    async def test_non_200_status_is_a_soft_failure(self, executor, mock_site, event, directive):
        mock_site.write_file.return_value = 201

        state = await run(
            executor, [WriteFileCommand("a.js", "js", "x")], event, directive
        )

        assert state.results[0].success is False

    @pytest.mark.asyncio
    async def test_lazy_output_skips_write_and_continues(self, executor, mock_site, event, directive):
        commands = [
            WriteFileCommand(path="lazy.js", language="javascript", content="a();\n// ..."),
            WriteFileCommand(path="full.js", language="javascript", content="a();"),
        ]

        state = await run(executor, commands, event, directive)

        mock_site.write_file.assert_awaited_once_with("full.js", "a();")
        assert state.results[0].success is False
        assert state.results[0].path == "lazy.js"
        assert "lazy.js" in state.results[0].error
        assert state.results[1].success is True

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, executor, mock_site, event, directive):
        mock_site.write_file.side_effect = BackendError("boom", status=500, payload={"code": "x"})

        with pytest.raises(BackendError):
            await run(executor, [WriteFileCommand("a.js", "js", "x")], event, directive)


class TestScript:
    @pytest.mark.asyncio
    async def test_appends_handler_export(self, executor, mock_runner, event, directive):
        await run(executor, [ScriptCommand("const handler = async () => 1;")], event, directive)

        source = mock_runner.run.await_args.args[0]
        assert source.endswith("\nmodule.exports = { handler };")

    @pytest.mark.asyncio
    async def test_keeps_existing_export(self, executor, mock_runner, event, directive):
        content = "module.exports = { handler: async () => 1 };"

        await run(executor, [ScriptCommand(content)], event, directive)

        assert mock_runner.run.await_args.args[0] == content

    @pytest.mark.asyncio
    async def test_error_field_marks_failure(self, executor, mock_runner, event, directive):
        mock_runner.run.return_value = {"error": "no permission"}

        state = await run(executor, [ScriptCommand("const handler = () => 1;")], event, directive)

        assert state.results[0].success is False
        assert state.results[0].data == {"error": "no permission"}

    @pytest.mark.asyncio
    async def test_non_dict_result_is_success(self, executor, mock_runner, event, directive):
        mock_runner.run.return_value = [1, 2, 3]

        state = await run(executor, [ScriptCommand("const handler = () => [1,2,3];")], event, directive)

        assert state.results[0].success is True

    @pytest.mark.asyncio
    async def test_configured_secrets_are_interpolated(self, mock_site, mock_host, mock_runner, event, directive):
        executor = CommandExecutor(
            site=mock_site,
            host=mock_host,
            script_runner=mock_runner,
            secrets={"{{secrets.wpUrl}}": "https://site.test"},
        )
        content = "const handler = () => fetch('{{secrets.wpUrl}}/x', {k: '{{secrets.wpapiKey}}'});"

        await run(executor, [ScriptCommand(content)], event, directive)

        source = mock_runner.run.await_args.args[0]
        assert "https://site.test/x" in source
        assert "{{secrets.wpapiKey}}" in source

    def test_interpolate_secrets_without_values_is_noop(self):
        source = "x('{{secrets.wpUrl}}')"

        assert interpolate_secrets(source, {}) == source


class TestGoogleSearch:
    @pytest.mark.asyncio
    async def test_delegates_to_host_without_search_client(self, executor, mock_host, event, directive):
        mock_host.google_search.return_value = [
            {
                "title": "Forecast",
                "link": "https://weather.test",
                "snippet": "Sunny",
                "pagemap": {"metatags": [{"og:image": "https://weather.test/sun.png"}]},
            }
        ]

        state = await run(
            executor, [named(CommandKind.GOOGLE_SEARCH, "weather today")], event, directive
        )

        mock_host.google_search.assert_awaited_once_with("weather today", {"q": "weather today"})
        assert state.results[0].success is True
        assert state.results[0].data == [
            {
                "title": "Forecast",
                "link": "https://weather.test",
                "snippet": "Sunny",
                "image": "https://weather.test/sun.png",
            }
        ]

    @pytest.mark.asyncio
    async def test_uses_search_client_when_configured(self, mock_site, mock_host, mock_runner, event, directive):
        search_client = AsyncMock()
        search_client.search.return_value = [{"title": "t", "link": "l", "snippet": "s"}]
        executor = CommandExecutor(
            site=mock_site, host=mock_host, script_runner=mock_runner, search_client=search_client
        )

        state = await run(executor, [named(CommandKind.GOOGLE_SEARCH, "cats")], event, directive)

        search_client.search.assert_awaited_once_with("cats")
        mock_host.google_search.assert_not_awaited()
        assert state.results[0].data[0]["image"] is None

    @pytest.mark.asyncio
    async def test_no_results_is_soft_failure(self, executor, mock_host, event, directive):
        mock_host.google_search.return_value = None

        state = await run(executor, [named(CommandKind.GOOGLE_SEARCH, "zzz")], event, directive)

        assert state.results[0].success is False
        assert state.results[0].data == {"error": "No results found"}

    def test_map_search_items_tolerates_missing_pagemap(self):
        items = [{"title": "a", "link": "b", "snippet": "c", "pagemap": {"metatags": []}}]

        assert map_search_items(items) == [
            {"title": "a", "link": "b", "snippet": "c", "image": None}
        ]

    def test_map_search_items_ignores_malformed_metatags(self):
        items = [{"title": "a", "link": "b", "snippet": "c", "pagemap": {"metatags": ["og"]}}]

        assert map_search_items(items)[0]["image"] is None


class TestWebpageToText:
    @pytest.mark.asyncio
    async def test_truncates_content(self, executor, mock_host, event, directive):
        mock_host.webpage_to_text.return_value = {"url": "https://a.test", "content": "x" * 6000}

        state = await run(executor, [named(CommandKind.WEBPAGE_TO_TEXT, "https://a.test")], event, directive)

        assert state.results[0].success is True
        assert len(state.results[0].data["content"]) == 5000

    @pytest.mark.asyncio
    async def test_missing_url_is_soft_failure(self, executor, mock_host, event, directive):
        mock_host.webpage_to_text.return_value = {"content": "partial"}

        state = await run(executor, [named(CommandKind.WEBPAGE_TO_TEXT, "https://a.test")], event, directive)

        assert state.results[0].success is False
        assert state.results[0].data == {"error": "Unable to read website"}


class TestViewImage:
    @pytest.mark.asyncio
    async def test_view_image_payload(self, executor, event, directive):
        state = await run(executor, [named(CommandKind.VIEW_IMAGE, "https://a.test/i.png")], event, directive)

        assert state.results[0].success is True
        assert state.results[0].data == [
            {"type": "text", "text": "Image URL: https://a.test/i.png"},
            {"type": "image_url", "image_url": {"url": "https://a.test/i.png"}},
        ]


class TestMetaAction:
    @pytest.mark.asyncio
    async def test_meta_action_is_terminal(self, executor, mock_site, event, directive):
        commands = [
            named(CommandKind.META_ACTION, "execute_and_wait"),
            WriteFileCommand("after.js", "js", "x"),
        ]

        state = await run(executor, commands, event, directive)

        assert len(state.results) == 1
        assert state.stopped is True
        mock_site.write_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_execute_and_wait_removes_request(self, executor, event, directive):
        await run(executor, [named(CommandKind.META_ACTION, "execute_and_wait")], event, directive)

        assert directive.actions == []

    @pytest.mark.asyncio
    async def test_execute_and_callback_adds_request_once(self, executor, event):
        directive = ContinuationDirective(actions=[])

        state = await run(executor, [named(CommandKind.META_ACTION, "execute_and_callback")], event, directive)

        assert directive.actions == [REQUEST_CHAT_MODEL]
        assert state.results[0].data == "execute_and_callback"

    @pytest.mark.asyncio
    async def test_execute_and_callback_respects_disabled_continuation(self, executor, event):
        directive = ContinuationDirective(actions=[REQUEST_CHAT_MODEL_EXCEEDED])
        state = RunState(auto_continue_disabled=True)

        await run(executor, [named(CommandKind.META_ACTION, "execute_and_callback")], event, directive, state)

        assert directive.actions == [REQUEST_CHAT_MODEL_EXCEEDED]

    @pytest.mark.asyncio
    async def test_json_string_tokens_are_recognized(self, executor, event):
        directive = ContinuationDirective(actions=[])

        await run(
            executor,
            [named(CommandKind.META_ACTION, "execute_and_callback", structured=True)],
            event,
            directive,
        )
        assert directive.actions == [REQUEST_CHAT_MODEL]

        await run(
            executor,
            [named(CommandKind.META_ACTION, "execute_and_wait", structured=True)],
            event,
            directive,
        )
        assert directive.actions == []

    @pytest.mark.asyncio
    async def test_unknown_token_passes_through(self, executor, event, directive):
        state = await run(executor, [named(CommandKind.META_ACTION, "reflect")], event, directive)

        assert state.results[0].success is True
        assert directive.actions == [REQUEST_CHAT_MODEL]


class TestJobFinished:
    @pytest.mark.asyncio
    async def test_job_completed_with_post_id(self, executor, mock_host, mock_site, event, directive):
        argument = {"post_id": 12, "message": "Article published"}

        state = await run(
            executor, [named(CommandKind.JOB_COMPLETED, argument, structured=True)], event, directive
        )

        mock_host.encrypt.assert_awaited_once_with("Article published")
        mock_host.update_chat.assert_awaited_once_with(
            title="ciphertext", chat_icon="\U0001f7e2", chat_id="chat-1"
        )
        mock_site.notify_job_finished.assert_awaited_once_with(12, "Article published")
        assert state.results[0].success is True
        assert state.results[0].data == argument
        assert state.stopped is True

    @pytest.mark.asyncio
    async def test_job_failed_without_post_id_skips_callback(self, executor, mock_host, mock_site, event, directive):
        await run(
            executor,
            [named(CommandKind.JOB_FAILED, {"message": "Could not finish"}, structured=True)],
            event,
            directive,
        )

        assert mock_host.update_chat.await_args.kwargs["chat_icon"] == "\U0001f534"
        mock_site.notify_job_finished.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_text_argument_is_the_message(self, executor, mock_host, event, directive):
        await run(executor, [named(CommandKind.JOB_COMPLETED, "All done")], event, directive)

        mock_host.encrypt.assert_awaited_once_with("All done")

    @pytest.mark.asyncio
    async def test_notifications_run_concurrently(self, executor, mock_host, mock_site, event, directive):
        both_started = asyncio.Event()
        started = []

        async def notification(*args, **kwargs):
            started.append(True)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return 200

        mock_host.update_chat.side_effect = notification
        mock_site.notify_job_finished.side_effect = notification

        state = await run(
            executor,
            [named(CommandKind.JOB_COMPLETED, {"post_id": 1, "message": "m"}, structured=True)],
            event,
            directive,
        )

        assert len(started) == 2
        assert state.results[0].success is True


class TestSuggestion:
    @pytest.mark.asyncio
    async def test_suggestion_is_recorded(self, executor, event, directive):
        state = await run(executor, [named(CommandKind.SUGGESTION, "Deploy now?")], event, directive)

        assert state.results_as_dicts() == [
            {"type": "suggestion", "success": True, "data": "Deploy now?"}
        ]
