from __future__ import annotations

import asyncio
import logging

from .core.errors import Failure
from .core.settings import ClientSettings
from .features.session.controller import SessionController
from .features.session.transport import SessionTransport
from .ui.presenters import RichPresenter, candidate_label

logger = logging.getLogger(__name__)


async def play_loop(controller: SessionController, presenter: RichPresenter) -> None:
    """Prompt-driven game loop; returns when the player quits."""

    presenter.welcome()
    presenter.show(controller.view())
    while True:
        view = controller.view()
        raw = presenter.prompt(view)
        if raw in {"q", "quit"}:
            return
        if raw in {"n", "new"}:
            presenter.busy("Starting a new game…")
            await controller.start_session()
        elif raw in {"a", "abandon"}:
            controller.abandon()
        elif raw.isdecimal() and view.state is not None and 1 <= int(raw) <= len(view.state.roster):
            candidate = view.state.roster[int(raw) - 1]
            presenter.busy(f"Excluding {candidate_label(candidate)}…")
            outcome = await controller.exclude_candidate(candidate)
            if isinstance(outcome, Failure):
                logger.debug("Exclusion not applied", extra={"kind": outcome.kind.value})
        else:
            presenter.invalid_input(raw)
            continue
        presenter.show(controller.view())


async def _run(settings: ClientSettings, presenter: RichPresenter) -> None:
    controller = SessionController(SessionTransport(settings))
    try:
        await play_loop(controller, presenter)
    finally:
        await controller.aclose()


def run_play(settings: ClientSettings, *, no_color: bool = False) -> None:
    presenter = RichPresenter(no_color=no_color)
    try:
        asyncio.run(_run(settings, presenter))
    except (KeyboardInterrupt, EOFError):
        presenter.console.print()
