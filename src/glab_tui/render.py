"""Turn navigation state into rich Text for the interactive UI and plain rows for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text

from .models.pipelines import Pipeline, format_duration
from .navigation import NavigationState, View

MAX_VISIBLE = 10
LOG_TAIL = 15

STATUS_ICONS = {
    "running": "●",
    "success": "✓",
    "failed": "✗",
}

PIPELINE_HELP = (
    "Navigation: ↑/↓ or j/k | Ctrl+U/D: page up/down | g/G: first/last | "
    "Enter: view jobs | r: refresh | space: auto-refresh | q: quit"
)
JOB_HELP = (
    "Navigation: ↑/↓ or j/k | Ctrl+U/D: page up/down | g/G: first/last | "
    "Enter: view logs | Esc: back to pipelines | l: logs --follow"
)
LOG_HELP = "Navigation: Esc: back to jobs | q: quit"


@dataclass(frozen=True)
class Theme:
    title: str = "bold #FAFAFA on #7D56F4"
    header: str = "bold #FAFAFA on #F25D94"
    selected: str = "bold #EE6FF8"
    running: str = "#04B575"
    success: str = "#04B575"
    failed: str = "#FF5F87"
    pending: str = "#FFFF87"
    faint: str = "dim"
    error: str = "bold #FF5F87"
    instruction: str = "#04B575"

    def status_style(self, status: str) -> str:
        return {
            "running": self.running,
            "success": self.success,
            "failed": self.failed,
        }.get(status, self.pending)


DEFAULT_THEME = Theme()


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status, "○")


def truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return value[: width - 3] + "..."


def visible_window(cursor: int, total: int, size: int = MAX_VISIBLE) -> tuple[int, int]:
    """Return the ``[start, end)`` slice of a list to show, keeping the cursor in view."""
    if total <= size:
        return 0, total
    start = max(cursor - size // 2, 0)
    end = min(start + size, total)
    return max(end - size, 0), end


def format_pipeline_row(pipeline: Pipeline) -> str:
    """Plain one-line summary used by the ``pipelines`` command."""
    age = f"  {pipeline.time_ago}" if pipeline.time_ago else ""
    return (
        f"{status_icon(pipeline.status)} #{pipeline.id:<12d} {pipeline.status:<20s} "
        f"{truncate(pipeline.ref, 30):<30s} {pipeline.jobs_summary}{age}"
    )


# ── Screens ───────────────────────────────────────────────────────


def _title(text: Text, project: str, theme: Theme) -> None:
    text.append(f"🚀 GitLab TUI - {project}", style=theme.title)
    text.append("\n")


def _status_lines(text: Text, state: NavigationState, provenance: str, theme: Theme) -> None:
    if provenance:
        text.append(f"Source: {provenance}\n", style=theme.faint)
    if state.loading:
        text.append("Loading...\n", style=theme.faint)
    if state.error:
        text.append(f"Error: {state.error}\n", style=theme.error)


def _row(text: Text, line: str, status: str, selected: bool, theme: Theme) -> None:
    text.append("▶ " if selected else "  ")
    text.append(status_icon(status), style=theme.status_style(status))
    text.append(line, style=theme.selected if selected else "")
    text.append("\n")


def render_welcome(state: NavigationState, project: str, theme: Theme = DEFAULT_THEME) -> Text:
    text = Text()
    _title(text, project, theme)
    text.append("\n")
    text.append(" 🚀 Welcome to GitLab TUI! ", style=theme.title)
    text.append("\n\n")
    text.append("📋 Quick Start Guide:\n", style=theme.instruction)
    text.append("  • Press 'r' to refresh and load pipelines\n")
    text.append("  • Use ↑/↓ or j/k to navigate\n")
    text.append("  • Press Enter to drill down: Pipelines → Jobs → Logs\n")
    text.append("  • Press 'l' on a job to stream logs in real-time\n")
    text.append("  • Press Esc to go back, 'q' to quit\n\n")
    text.append("🎯 Current Status:\n", style=theme.instruction)
    if state.loading:
        text.append("  • Loading pipelines...\n")
    else:
        text.append("  • No pipelines loaded yet\n")
        text.append("  • Press 'r' to refresh and load from GitLab\n")
    if state.error:
        text.append(f"\nError: {state.error}\n", style=theme.error)
    text.append("\nPress 'r' to refresh | 'q' to quit", style=theme.faint)
    return text


def render_pipeline_view(state: NavigationState, project: str, theme: Theme = DEFAULT_THEME) -> Text:
    pipelines = state.pipelines
    if not pipelines:
        return render_welcome(state, project, theme)

    text = Text()
    _title(text, project, theme)
    text.append("🔄 Live Pipelines", style=theme.header)
    text.append("\n")
    auto = "on" if state.auto_refresh else "off"
    text.append(
        f"📊 {len(pipelines)} total | 🔄 {state.running_count} running | "
        f"auto-refresh {auto} | [r] Refresh | [Enter] View Jobs\n",
        style=theme.faint,
    )
    _status_lines(text, state, state.pipelines_provenance, theme)

    start, end = visible_window(state.pipeline_cursor, len(pipelines))
    if len(pipelines) > MAX_VISIBLE:
        text.append(f"Showing {start + 1}-{end} of {len(pipelines)} pipelines\n", style=theme.faint)
    text.append("\n")

    for i in range(start, end):
        p = pipelines[i]
        duration = "⏱️  running..." if p.status == "running" else f"⏱️  {p.jobs_summary}"
        line = f" #{p.id:<10d} {truncate(p.project_name, 16):<16s} {truncate(p.ref, 20):<20s} {duration}"
        _row(text, line, p.status, i == state.pipeline_cursor, theme)

    text.append("\n")
    text.append(PIPELINE_HELP, style=theme.faint)
    return text


def render_job_view(state: NavigationState, project: str, theme: Theme = DEFAULT_THEME) -> Text:
    jobs = state.jobs
    counts = {status: sum(1 for j in jobs if j.status == status) for status in STATUS_ICONS}

    text = Text()
    _title(text, project, theme)
    text.append(f"🔧 Jobs (Pipeline #{state.selected_pipeline_id})", style=theme.header)
    text.append("\n")
    text.append(
        f"📊 {len(jobs)} total | ✅ {counts['success']} success | "
        f"🔄 {counts['running']} running | ❌ {counts['failed']} failed\n",
        style=theme.faint,
    )
    _status_lines(text, state, state.jobs_provenance, theme)
    text.append("\n")

    if not jobs:
        text.append("  No jobs in this pipeline\n", style=theme.faint)
    start, end = visible_window(state.job_cursor, len(jobs))
    for i in range(start, end):
        job = jobs[i]
        line = (
            f" {truncate(job.name, 25):<25s} {job.status:<12s} {job.stage:<10s} "
            f"{format_duration(job.duration)}"
        ).rstrip()
        _row(text, line, job.status, i == state.job_cursor, theme)

    text.append("\n")
    text.append(JOB_HELP, style=theme.faint)
    return text


def render_log_view(state: NavigationState, project: str, theme: Theme = DEFAULT_THEME) -> Text:
    text = Text()
    _title(text, project, theme)
    text.append(f"📋 Logs (Job #{state.selected_job_id})", style=theme.header)
    text.append("\n")
    _status_lines(text, state, state.logs_provenance, theme)
    text.append("\n")

    for line in state.logs.split("\n")[-LOG_TAIL:]:
        if line:
            # traces carry ANSI colour codes
            text.append_text(Text.from_ansi(line))
            text.append("\n")

    text.append("\n")
    text.append(LOG_HELP, style=theme.faint)
    return text


def render_state(state: NavigationState, project: str, theme: Theme = DEFAULT_THEME) -> Text:
    if state.current_view is View.JOB_LIST:
        return render_job_view(state, project, theme)
    if state.current_view is View.LOG_VIEW:
        return render_log_view(state, project, theme)
    return render_pipeline_view(state, project, theme)
