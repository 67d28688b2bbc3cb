"""Textual application for the interactive pipeline browser."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Static

from .navigation import (
    Back,
    Enter,
    Event,
    FollowLogs,
    JumpFirst,
    JumpLast,
    MoveCursor,
    Navigator,
    PageDown,
    PageUp,
    Quit,
    Refresh,
    ToggleAutoRefresh,
)
from .render import DEFAULT_THEME, Theme, render_state
from .session import PipelineSource, Session


class PipelineApp(App[int | None]):
    """Pipelines → jobs → logs drill-down.

    The app only translates keys into navigation events; all state lives in
    the :class:`Session`. The return value is the job ID to stream with
    ``logs --follow`` when the user pressed ``l``, otherwise None.
    """

    TITLE = "glab-tui"

    CSS = """
    #view {
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "post('quit')", "Quit"),
        Binding("ctrl+c", "post('quit')", "Quit", show=False, priority=True),
        Binding("escape", "post('back')", "Back"),
        Binding("r", "post('refresh')", "Refresh"),
        Binding("space", "post('toggle')", "Auto-refresh"),
        Binding("enter", "post('enter')", "Open"),
        Binding("l", "post('follow')", "Follow logs"),
        Binding("up", "post('up')", "Up", show=False),
        Binding("k", "post('up')", "Up", show=False),
        Binding("down", "post('down')", "Down", show=False),
        Binding("j", "post('down')", "Down", show=False),
        Binding("pageup", "post('page_up')", "Page up", show=False),
        Binding("ctrl+u", "post('page_up')", "Page up", show=False),
        Binding("pagedown", "post('page_down')", "Page down", show=False),
        Binding("ctrl+d", "post('page_down')", "Page down", show=False),
        Binding("home", "post('first')", "First", show=False),
        Binding("g", "post('first')", "First", show=False),
        Binding("end", "post('last')", "Last", show=False),
        Binding("G", "post('last')", "Last", show=False),
    ]

    KEY_EVENTS: dict[str, Event] = {
        "quit": Quit(),
        "back": Back(),
        "refresh": Refresh(),
        "toggle": ToggleAutoRefresh(),
        "enter": Enter(),
        "follow": FollowLogs(),
        "up": MoveCursor(-1),
        "down": MoveCursor(1),
        "page_up": PageUp(),
        "page_down": PageDown(),
        "first": JumpFirst(),
        "last": JumpLast(),
    }

    def __init__(
        self,
        source: PipelineSource,
        project: str,
        *,
        refresh_interval: float = 3.0,
        theme: Theme = DEFAULT_THEME,
    ) -> None:
        super().__init__()
        self.project = project
        self.view_theme = theme
        self.session = Session(
            Navigator(refresh_interval=refresh_interval),
            source,
            on_change=self.refresh_view,
        )

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(id="view")

    def on_mount(self) -> None:
        self.refresh_view()
        self.run_worker(self._run_session(), name="session", exclusive=True)

    async def _run_session(self) -> None:
        try:
            follow_job_id = await self.session.run()
        finally:
            await self.session.source.aclose()
        self.exit(follow_job_id)

    def refresh_view(self) -> None:
        view = self.query_one("#view", Static)
        view.update(render_state(self.session.state, self.project, self.view_theme))

    def action_post(self, key: str) -> None:
        self.session.post(self.KEY_EVENTS[key])
