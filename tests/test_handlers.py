"""Tests for the change handler chain and build steps."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from websync_core.handlers import (
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
    BuildStep,
    ChangeHandler,
    HandlerChain,
    build_handler_chain,
    build_step_handler,
    refresh_handler,
)
from websync_core.models import ChangeKind


def recording_handler(name, extension, calls, result=True):
    def action(object_name, kind):
        calls.append(name)
        return result

    return ChangeHandler(name=name, extension=extension, action=action)


class TestChangeHandler:
    def test_empty_extension_matches_anything(self):
        handler = ChangeHandler("any", "", lambda n, k: True)
        assert handler.matches("app.ts")
        assert handler.matches("")

    def test_extension_match_is_case_insensitive(self):
        handler = ChangeHandler("sass", ".scss", lambda n, k: True)
        assert handler.matches("Foo.SCSS")
        assert handler.matches("styles/site.scss")
        assert not handler.matches("site.css")


class TestHandlerChain:
    def test_first_matching_handler_claims(self):
        calls = []
        chain = HandlerChain(
            [
                recording_handler("ts", ".ts", calls),
                recording_handler("scss", ".scss", calls),
                recording_handler("default", "", calls),
            ]
        )

        claimed = chain.dispatch("site.scss", ChangeKind.CHANGED)

        assert claimed.name == "scss"
        assert calls == ["scss"]

    def test_unmatched_falls_through_to_terminal(self):
        calls = []
        chain = HandlerChain([recording_handler("ts", ".ts", calls), recording_handler("default", "", calls)])

        claimed = chain.dispatch("Views/Home.cshtml", ChangeKind.RENAMED)

        assert claimed.name == "default"
        assert calls == ["default"]

    def test_declining_handler_falls_through(self):
        calls = []
        chain = HandlerChain(
            [
                recording_handler("ts-check", ".ts", calls, result=False),
                recording_handler("default", "", calls),
            ]
        )

        claimed = chain.dispatch("app.ts", ChangeKind.CHANGED)

        assert claimed.name == "default"
        assert calls == ["ts-check", "default"]

    def test_every_name_is_handled_exactly_once(self):
        calls = []
        chain = HandlerChain(
            [
                recording_handler("ts", ".ts", calls),
                recording_handler("scss", ".scss", calls),
                recording_handler("default", "", calls),
            ]
        )

        for name in ["a.ts", "B.SCSS", "c.js", "", "bin/Web.dll"]:
            calls.clear()
            chain.dispatch(name, ChangeKind.CHANGED)
            assert len(calls) == 1

    def test_chain_requires_terminal_handler(self):
        with pytest.raises(ValueError, match="must end"):
            HandlerChain([recording_handler("ts", ".ts", [])])

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            HandlerChain([])

    def test_only_one_match_anything_handler(self):
        with pytest.raises(ValueError, match="Only the last"):
            HandlerChain([recording_handler("a", "", []), recording_handler("b", "", [])])

    def test_terminal_handler_declining_is_an_error(self):
        chain = HandlerChain([recording_handler("default", "", [], result=False)])
        with pytest.raises(RuntimeError):
            chain.dispatch("x", ChangeKind.CHANGED)


class TestBuildStep:
    def test_run_returns_exit_code(self, tmp_path):
        step = BuildStep("TypeScript", ".ts", ("tsc", "--project", "."), tmp_path)
        with patch("websync_core.handlers.subprocess.run") as run:
            run.return_value = MagicMock(returncode=2)
            assert step.run() == 2

        run.assert_called_once_with(["tsc", "--project", "."], cwd=tmp_path, check=False)

    def test_missing_executable(self, tmp_path):
        step = BuildStep("Sass", ".scss", ("sass-that-does-not-exist",), tmp_path)
        with patch("websync_core.handlers.subprocess.run", side_effect=FileNotFoundError):
            assert step.run() == EXIT_NOT_FOUND

    def test_permission_denied(self, tmp_path):
        step = BuildStep("Sass", ".scss", ("sass",), tmp_path)
        with patch("websync_core.handlers.subprocess.run", side_effect=PermissionError(13, "Permission denied")):
            assert step.run() == EXIT_NOT_EXECUTABLE

    def test_non_executable_tool_still_refreshes(self, tmp_path, fake_browser):
        tool = tmp_path / "build.sh"
        tool.write_text("#!/bin/sh\nexit 0\n")
        tool.chmod(0o644)
        notifier = MagicMock()
        step = BuildStep("TypeScript", ".ts", (str(tool),), tmp_path)

        chain = build_handler_chain(fake_browser, [step], notifier)
        claimed = chain.dispatch("app.ts", ChangeKind.CHANGED)

        assert claimed.name == "TypeScript"
        notifier.alert.assert_called_once()
        fake_browser.refresh.assert_called_once()


class TestBuiltInHandlers:
    def make_step(self, code):
        step = MagicMock(spec=BuildStep)
        step.name = "TypeScript"
        step.extension = ".ts"
        step.run.return_value = code
        return step

    def test_successful_build_refreshes_without_alert(self, fake_browser):
        notifier = MagicMock()
        handler = build_step_handler(self.make_step(0), fake_browser, notifier)

        assert handler.action("app.ts", ChangeKind.CHANGED) is True
        fake_browser.refresh.assert_called_once()
        notifier.alert.assert_not_called()

    def test_failed_build_alerts_and_still_refreshes(self, fake_browser):
        notifier = MagicMock()
        handler = build_step_handler(self.make_step(1), fake_browser, notifier)

        assert handler.action("app.ts", ChangeKind.CHANGED) is True
        notifier.alert.assert_called_once()
        assert "exit code 1" in notifier.alert.call_args[0][0]
        fake_browser.refresh.assert_called_once()

    def test_refresh_handler_is_terminal(self, fake_browser):
        handler = refresh_handler(fake_browser)
        assert handler.extension == ""
        assert handler.action("", ChangeKind.BULK) is True
        fake_browser.refresh.assert_called_once()


class TestBuildHandlerChain:
    def test_priority_order(self, fake_browser):
        steps = [
            BuildStep("TypeScript", ".ts", ("tsc",), Path(".")),
            BuildStep("Sass", ".scss", ("sass",), Path(".")),
        ]
        chain = build_handler_chain(fake_browser, steps)
        assert chain.names == ["TypeScript", "Sass", "refresh"]

    def test_disabled_handlers_are_omitted(self, fake_browser):
        chain = build_handler_chain(fake_browser, [BuildStep("Sass", ".scss", ("sass",), Path("."))])
        assert chain.names == ["Sass", "refresh"]

        chain = build_handler_chain(fake_browser)
        assert chain.names == ["refresh"]

    def test_ts_change_runs_only_ts_build(self, fake_browser):
        with patch("websync_core.handlers.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0)
            chain = build_handler_chain(
                fake_browser,
                [
                    BuildStep("TypeScript", ".ts", ("tsc",), Path(".")),
                    BuildStep("Sass", ".scss", ("sass",), Path(".")),
                ],
            )
            chain.dispatch("app.ts", ChangeKind.CHANGED)

        run.assert_called_once()
        assert run.call_args[0][0] == ["tsc"]
        fake_browser.refresh.assert_called_once()
