from __future__ import annotations

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Container, Grid, Horizontal
from textual.widgets import Button, Footer, Header, Label, Static

from ..core.feedback import Feedback, status_banner
from ..core.models import Candidate, CandidateKey, Phase
from ..core.settings import ClientSettings, load_settings
from ..features.session.controller import SessionController, SessionView
from ..features.session.transport import SessionTransport
from .presenters import candidate_label, image_caption

_BASE_CSS = """
    Screen {
        background: #f6f8ff;
        color: #1b233d;
    }
    .section {
        padding: 1 2;
        background: #ffffff;
        border: round #d9e2f5;
        margin: 0 0 1 0;
    }
    #error {
        display: none;
        background: #e74c3c;
        color: #ffffff;
        text-align: center;
        padding: 0 1;
    }
    #error.visible { display: block; }
    #status {
        text-align: center;
        padding: 0 2;
    }
    #status.won { background: #2ecc71; color: #ffffff; }
    #status.lost { background: #e74c3c; color: #ffffff; }
    #hint { background: #f8f9fa; border-left: thick #3498db; padding: 0 1; }
    #explanation { background: #fff3cd; border-left: thick #ffc107; padding: 0 1; }
    #exclusions { background: #e74c3c; color: #ffffff; text-align: center; min-width: 6; }
    #controls { height: auto; }
    #roster {
        layout: grid;
        grid-size: 5;
        grid-gutter: 0 1;
        height: auto;
    }
    .candidate { width: 100%; min-height: 3; }
    .candidate.excluded { opacity: 60%; }
"""


def feedback_border(feedback: Feedback) -> tuple[str, str]:
    """Textual border (edge type, colour) for a candidate's feedback class."""

    return ("heavy" if feedback.highlighted else "round", feedback.color)


class GuessApp(App[None]):
    TITLE = "Guessdex"
    SUB_TITLE = "Exclude every species except the secret one"
    BINDINGS = [
        ("ctrl+n", "new_game", "New Game"),
        ("escape", "abandon", "Abandon"),
        ("ctrl+q", "quit_app", "Quit"),
    ]
    CSS = _BASE_CSS

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        controller: SessionController | None = None,
    ) -> None:
        super().__init__()
        self._controller = controller or SessionController(SessionTransport(settings or load_settings()))
        self._button_keys: dict[str, CandidateKey] = {}
        self._render_generation = 0
        self._ready = False
        self._unsubscribe = self._controller.subscribe(self._render_view)

    @property
    def controller(self) -> SessionController:
        return self._controller

    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Header(show_clock=False)
        yield Static("", id="error")
        yield Static("", id="status")
        with Container(classes="section"):
            yield Label("Hint:")
            yield Static("[dim]Start a new game to receive a hint.[/]", id="hint")
            yield Static("", id="explanation")
            with Horizontal(id="controls"):
                yield Button("New Game", id="btn-new", variant="primary")
                yield Button("Abandon", id="btn-abandon", variant="warning")
                yield Label("Expected exclusions:")
                yield Static("-", id="exclusions")
        yield Grid(id="roster")
        yield Footer()

    def on_mount(self) -> None:  # type: ignore[override]
        self._ready = True
        self._render_view(self._controller.view())

    async def on_unmount(self) -> None:
        self._ready = False
        self._unsubscribe()
        await self._controller.aclose()

    # --- rendering ---
    def _render_view(self, view: SessionView) -> None:
        if not self._ready:
            return
        error = self.query_one("#error", Static)
        error.update(f"Error: {view.error_message}" if view.error_message else "")
        error.set_class(bool(view.error_message), "visible")

        self.query_one("#btn-new", Button).disabled = view.busy
        self.query_one("#btn-new", Button).label = "Loading..." if view.busy else "New Game"
        self.query_one("#btn-abandon", Button).disabled = not view.has_session

        status = self.query_one("#status", Static)
        banner = status_banner(view.state)
        status.update(f"[b]{banner[0]}[/] {banner[1]}" if banner else "")
        status.set_class(view.state is not None and view.state.phase is Phase.WON, "won")
        status.set_class(view.state is not None and view.state.phase is Phase.LOST, "lost")

        state = view.state
        self.query_one("#hint", Static).update(state.hint if state else "[dim]Start a new game to receive a hint.[/]")
        self.query_one("#explanation", Static).update(state.explanation if state else "")
        self.query_one("#exclusions", Static).update(str(state.expected_remaining) if state else "-")
        self._render_roster(view)

    def _render_roster(self, view: SessionView) -> None:
        grid = self.query_one("#roster", Grid)
        grid.remove_children()
        self._button_keys.clear()
        if view.state is None:
            return
        # Removal is deferred, so ids must not repeat across renders.
        self._render_generation += 1
        buttons: list[Button] = []
        for index, candidate in enumerate(view.state.roster):
            button_id = f"cand-{self._render_generation}-{index}"
            self._button_keys[button_id] = candidate.key
            buttons.append(self._candidate_button(button_id, candidate, view))
        grid.mount(*buttons)

    def _candidate_button(self, button_id: str, candidate: Candidate, view: SessionView) -> Button:
        feedback = view.feedback_for(candidate)
        classes = "candidate " + candidate.status.value
        label = f"{candidate_label(candidate)}\n[dim]{image_caption(candidate)}[/]"
        button = Button(label, id=button_id, classes=classes, disabled=not view.can_exclude(candidate))
        button.styles.border = feedback_border(feedback)
        return button

    # --- actions ---
    async def _start(self) -> None:
        await self._controller.start_session()

    async def _exclude(self, key: CandidateKey) -> None:
        candidate = self._controller.find_candidate(*key)
        if candidate is not None:
            await self._controller.exclude_candidate(candidate)

    def action_new_game(self) -> None:
        self.run_worker(self._start(), group="session")

    def action_abandon(self) -> None:
        self._controller.abandon()

    def action_quit_app(self) -> None:
        self.exit()

    @on(Button.Pressed, "#btn-new")
    def _on_new(self) -> None:
        self.action_new_game()

    @on(Button.Pressed, "#btn-abandon")
    def _on_abandon(self) -> None:
        self.action_abandon()

    @on(Button.Pressed, ".candidate")
    def _on_candidate(self, event: Button.Pressed) -> None:
        key = self._button_keys.get(event.button.id or "")
        if key is not None:
            self.run_worker(self._exclude(key), group="session")


def run_textual(settings: ClientSettings | None = None) -> None:
    GuessApp(settings).run()
