"""psjungle - watch mode Textual application."""

from collections.abc import Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Static

from psjungle.config import Settings
from psjungle.cycle import run_cycle
from psjungle.display import ERROR_STYLE
from psjungle.errors import InvalidSpecifierError, NoProcessesFoundError, SnapshotError
from psjungle.monitor import ProcessProvider


class StatusLine(Static):
    """Header line describing the running watch command."""

    DEFAULT_CSS = """
    StatusLine {
        dock: top;
        height: auto;
        padding: 0 1 1 1;
        background: $surface;
    }
    """


class TreeView(VerticalScroll):
    """Scrollable container for the rendered trees."""

    DEFAULT_CSS = """
    TreeView {
        height: 1fr;
        padding: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the tree view."""
        yield Static(id="tree-output")

    def show(self, text: Text) -> None:
        self.query_one("#tree-output", Static).update(text)


class WatchApp(App):
    """Re-runs one psjungle cycle on a fixed interval."""

    TITLE = "psjungle"
    SUB_TITLE = "Process tree watch"

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        specifiers: Sequence[str],
        settings: Settings,
        provider: ProcessProvider,
        status: str = "",
    ) -> None:
        """Initialize the WatchApp."""
        super().__init__()
        self._specifiers = list(specifiers)
        self._settings = settings
        self._provider = provider
        self._status = status
        self.cycles = 0
        self.last_output: Text = Text()

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusLine(self._status, id="status-line")
        yield TreeView(id="tree-view")
        yield Footer()

    def on_mount(self) -> None:
        """Run the first cycle right after mounting, then every interval."""
        self.call_later(self.run_once)
        self.set_interval(self._settings.interval, self.run_once)

    def run_once(self) -> None:
        """
        Run one cycle and show its output.

        Snapshot failures only affect this cycle; input errors and an empty
        match end the app with exit code 1.
        """
        self.cycles += 1
        try:
            result = run_cycle(self._specifiers, self._provider, self._settings)
        except (NoProcessesFoundError, InvalidSpecifierError) as exc:
            self.exit(return_code=1, message=str(exc))
            return
        except SnapshotError as exc:
            self._show([Text(f"Error: {exc}", style=ERROR_STYLE)])
            return

        self._show(result.output())

    def _show(self, lines: list[Text]) -> None:
        self.last_output = Text("\n").join(lines)
        self.query_one(TreeView).show(self.last_output)

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()
