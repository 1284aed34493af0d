from __future__ import annotations

import asyncio

from rich.console import Console

from guessdex import cli
from guessdex.core import settings
from guessdex.core.models import Phase
from guessdex.features.session import SessionController
from guessdex.play import play_loop
from guessdex.ui.presenters import RichPresenter


def test_parser_defaults_to_play():
    args = cli.build_parser().parse_args([])
    assert args.command == "play"
    assert args.log_level == "WARNING"
    assert args.base_url is None


def test_flags_take_precedence_over_environment():
    args = cli.build_parser().parse_args(["tui", "--base-url", "http://flag.test/", "--timeout", "0", "--log-level", "debug"])
    with settings.override(base_url="http://env.test", timeout=9.0):
        resolved = cli.resolve_settings(args)
    assert args.command == "tui"
    assert args.log_level == "DEBUG"
    assert resolved == settings.ClientSettings("http://flag.test", None)


def test_environment_used_when_flags_absent():
    args = cli.build_parser().parse_args(["play"])
    with settings.override(base_url="http://env.test", timeout=9.0):
        assert cli.resolve_settings(args) == settings.ClientSettings("http://env.test", 9.0)


class _ScriptedPresenter(RichPresenter):
    def __init__(self, inputs: list[str]) -> None:
        super().__init__(console=Console(record=True, width=100, color_system=None))
        self.inputs = list(inputs)

    def prompt(self, view):
        return self.inputs.pop(0)


def test_play_loop_drives_controller(scripted, state_factory):
    from guessdex.core.models import CandidateStatus

    scripted.start_results.append(state_factory(1))
    scripted.exclude_results.append(
        state_factory(
            1,
            [(10, None, CandidateStatus.EXCLUDED), (11, None, CandidateStatus.AVAILABLE)],
            phase=Phase.WON,
            valid=True,
        )
    )
    presenter = _ScriptedPresenter(["n", "x", "1", "1", "a", "q"])
    controller = SessionController(scripted)

    asyncio.run(play_loop(controller, presenter))

    assert scripted.calls == [("start",), ("exclude", 1, 10, None)]
    text = presenter.console.export_text()
    assert "Invalid input" in text
    assert "Congratulations!" in text
    assert "This game has ended" in text
    assert controller.state is None


def test_play_loop_rejects_non_decimal_digits(scripted, state_factory):
    scripted.start_results.append(state_factory(1))
    presenter = _ScriptedPresenter(["n", "²", "9", "q"])
    controller = SessionController(scripted)

    asyncio.run(play_loop(controller, presenter))

    assert scripted.calls == [("start",)]
    text = presenter.console.export_text()
    assert text.count("Invalid input") == 2
