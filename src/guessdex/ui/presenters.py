from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.feedback import Feedback, status_banner
from ..core.models import Candidate, Phase
from ..features.session.controller import SessionView

_FEEDBACK_LABELS: dict[Feedback, str] = {
    Feedback.AVAILABLE: "available",
    Feedback.EXCLUDED: "excluded",
    Feedback.CORRECT: "correct!",
    Feedback.INCORRECT_BUT_CONTINUING: "not it, keep going",
    Feedback.LOST: "game over",
}


def candidate_label(candidate: Candidate) -> str:
    if candidate.form:
        return f"{candidate.display_name} ({candidate.form})"
    return candidate.display_name


def image_caption(candidate: Candidate) -> str:
    return candidate.image_ref or "No Image"


class RichPresenter:
    def __init__(self, *, no_color: bool = False, console: Console | None = None):
        # Default: color ON, unless explicitly disabled via --no-color.
        if console is not None:
            self.console = console
        elif no_color:
            self.console = Console(force_terminal=False, color_system=None)
        else:
            self.console = Console(force_terminal=True, color_system="auto")

    def welcome(self) -> None:
        guide = (
            "[bold]Welcome![/] One species is the secret. Exclude the others one at a time.\n"
            "- Read the hint before each guess.\n"
            "- Type the number next to a species to exclude it.\n\n"
            "[bold]Controls[/]: numbers = exclude • n = new game • a = abandon • q = quit"
        )
        self.console.print(Panel(guide, title="How to play", border_style="green"))
        self.console.print()

    def busy(self, text: str) -> None:
        self.console.print(f"[dim]{text}[/]")

    def show(self, view: SessionView) -> None:
        if view.error_message:
            self.console.print(f"[bold white on #e74c3c] Error: {view.error_message} [/]")
        state = view.state
        if state is None:
            self.console.print("[dim]No game in progress. Press n to start one.[/]")
            return

        banner = status_banner(state)
        if banner:
            title, body = banner
            style = "#e74c3c" if state.phase is Phase.LOST else "#2ecc71"
            self.console.print(Panel(f"[bold]{title}[/]\n{body}", border_style=style, expand=False))

        info = Table.grid(padding=(0, 1))
        info.add_column(style="bold cyan", justify="right")
        info.add_column(justify="left")
        info.add_row("Hint", Text(state.hint or "-", style="italic"))
        if state.explanation:
            info.add_row("Explanation", state.explanation)
        info.add_row("Expected exclusions", f"[bold #e74c3c]{state.expected_remaining}[/]")
        self.console.print(Panel(info, title=f"Game {state.session_id}", border_style="magenta", expand=False))

        self.console.print(self.roster_table(view))

    def roster_table(self, view: SessionView) -> Table:
        table = Table(show_header=True, header_style="bold blue", box=box.SIMPLE_HEAVY)
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Species", style="bold")
        table.add_column("Status")
        if view.state is None:
            return table
        for index, candidate in enumerate(view.state.roster, 1):
            feedback = view.feedback_for(candidate)
            number = str(index) if view.can_exclude(candidate) else ""
            table.add_row(
                number,
                Text(candidate_label(candidate), style=feedback.color),
                Text(_FEEDBACK_LABELS[feedback], style=f"bold {feedback.color}" if feedback.highlighted else "dim"),
            )
        return table

    def prompt(self, view: SessionView) -> str:
        count = len(view.state.roster) if view.state else 0
        suffix = f"1-{count}, " if count and not view.is_terminal else ""
        return input(f"Choice ({suffix}n=new, a=abandon, q=quit): ").strip().lower()

    def invalid_input(self, raw: str) -> None:
        self.console.print(f"[red]Invalid input[/]: {raw!r}")
