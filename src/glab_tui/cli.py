"""Command-line entry point: interactive UI by default, plus one-shot commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from dataclasses import dataclass

import click
import httpx
from dotenv import load_dotenv

from . import __version__
from .client import GitLabClient
from .config import GlabTuiConfig
from .exceptions import GitLabError, ProjectDetectionError
from .follow import SEPARATOR, LogFollower
from .glab import GlabCli
from .models.pipelines import format_duration
from .models.projects import User
from .parsing import parse_pipeline_listing, parse_project_json
from .remote import detect_project_path
from .render import format_pipeline_row
from .source import DataSourceAdapter

logger = logging.getLogger(__name__)

COMMAND_ALIASES = {
    "p": "pipelines",
    "j": "job",
    "l": "logs",
    "d": "demo",
    "h": "help",
    "v": "version",
}

NO_PROJECT_HINT = "💡 Make sure you're in a GitLab repository or pass --repo group/project"

EXAMPLES = """\
\b
Examples:
    glab-tui                            # Start the interactive UI
    glab-tui demo                       # Demo mode (works anywhere)
    glab-tui pipelines                  # List pipelines
    glab-tui job 11098249149            # Check a specific job
    glab-tui logs 11098249149           # Show job logs
    glab-tui logs -f 11098249149        # Stream job logs until the job finishes
    glab-tui -R group/project p         # List pipelines of another project
"""


class AliasedGroup(click.Group):
    """Group that also accepts the one-letter command aliases."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: list[str]):
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd else None, cmd, args


@dataclass
class CliContext:
    config: GlabTuiConfig
    repo: str | None = None


def configure_logging(level: str | int, *, tui: bool = False) -> None:
    if tui:
        from textual.logging import TextualHandler

        handlers: list[logging.Handler] = [TextualHandler()]
    else:
        handlers = [logging.StreamHandler(sys.stderr)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _warn(message: str) -> None:
    click.echo(message, err=True)


async def _resolve_project(repo: str | None) -> str | None:
    if repo:
        return repo
    try:
        return await detect_project_path()
    except ProjectDetectionError as e:
        logger.debug("Project detection failed: %s", e)
        _warn(f"Warning: Could not detect GitLab project: {e}")
        return None


async def _require_project(repo: str | None) -> str:
    project_path = await _resolve_project(repo)
    if project_path is None:
        raise click.ClickException(f"Could not detect GitLab project\n{NO_PROJECT_HINT}")
    return project_path


# ════════════════════════════════════════════════════════════════════
# Group
# ════════════════════════════════════════════════════════════════════


@click.group(
    cls=AliasedGroup,
    invoke_without_command=True,
    epilog=EXAMPLES,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--repo", "-R", metavar="GROUP/PROJECT", help="Target another GitLab project")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, "--version", message="glab-tui v%(version)s")
@click.pass_context
def main(ctx: click.Context, repo: str | None, verbose: bool) -> None:
    """glab-tui - GitLab pipelines and jobs in your terminal."""
    load_dotenv()
    config = GlabTuiConfig.from_env()
    level = logging.DEBUG if verbose else config.log_level
    ctx.obj = CliContext(config=config, repo=repo)

    if ctx.invoked_subcommand is None:
        run_interactive(ctx.obj, level, demo=False)
    else:
        configure_logging(level)
        logger.debug("Using GitLab instance %s", config.url)


def run_tui(app) -> int | None:
    """Run the textual app; patched out in tests."""
    return app.run()


def run_interactive(obj: CliContext, level: str | int, *, demo: bool) -> None:
    from .app import PipelineApp

    project_path = None if demo else asyncio.run(_require_project(obj.repo))
    if not demo:
        click.echo("🚀 GitLab TUI - Pipeline Monitor")
        click.echo("⚡ Loading pipeline data...")
    configure_logging(level, tui=True)

    source = DataSourceAdapter.from_config(obj.config, project_path, demo=demo)
    app = PipelineApp(source, source.label, refresh_interval=obj.config.refresh_interval)
    try:
        follow_job_id = run_tui(app)
    finally:
        configure_logging(level)

    if follow_job_id is not None:
        _follow_logs(obj, follow_job_id, project_path)


# ════════════════════════════════════════════════════════════════════
# Commands
# ════════════════════════════════════════════════════════════════════


@main.command()
@click.pass_obj
def pipelines(obj: CliContext) -> None:
    """List recent pipelines of the current project."""

    async def _run() -> None:
        project_path = await _resolve_project(obj.repo)
        source = DataSourceAdapter.from_config(obj.config, project_path)
        try:
            listing = await source.fetch_pipelines()
        finally:
            await source.aclose()

        click.echo(f"GitLab Pipelines ({listing.provenance}):")
        click.echo(f"  {'ID':<13s} {'Status':<20s} {'Ref':<30s} Jobs")
        click.echo("─" * 80)
        for pipeline in listing.pipelines:
            click.echo(format_pipeline_row(pipeline))

    asyncio.run(_run())


@main.command()
@click.argument("job_id", type=int)
@click.pass_obj
def job(obj: CliContext, job_id: int) -> None:
    """Check the status of a single job."""
    click.echo(f"Checking job {job_id}...")

    async def _run() -> None:
        project_path = await _require_project(obj.repo)
        click.echo(f"📊 Project: {project_path}")
        source = DataSourceAdapter.from_config(obj.config, project_path)
        try:
            found = await source.get_job(job_id)
        except GitLabError as e:
            raise click.ClickException(f"Failed to get job details: {e}") from e
        finally:
            await source.aclose()

        click.echo(f"✅ Job {job_id} details:")
        click.echo(f"   Name: {found.name}")
        click.echo(f"   Status: {found.status}")
        click.echo(f"   Stage: {found.stage}")
        if found.duration is not None:
            click.echo(f"   Duration: {format_duration(found.duration)}")
        if found.web_url:
            click.echo(f"   URL: {found.web_url}")

    asyncio.run(_run())


@main.command()
@click.option("--follow", "-f", is_flag=True, help="Stream logs in real-time until the job finishes")
@click.argument("job_id", type=int)
@click.pass_obj
def logs(obj: CliContext, follow: bool, job_id: int) -> None:
    """Show the log of a job."""
    if follow:
        _follow_logs(obj, job_id, None)
        return

    click.echo(f"Fetching logs for job {job_id}...")

    async def _run() -> str:
        project_path = await _require_project(obj.repo)
        source = DataSourceAdapter.from_config(obj.config, project_path)
        try:
            return await source.get_job_log(job_id)
        except GitLabError as e:
            raise click.ClickException(f"Failed to get job logs: {e}") from e
        finally:
            await source.aclose()

    text = asyncio.run(_run())
    click.echo(f"📋 Job {job_id} logs:")
    click.echo(SEPARATOR)
    click.echo(text)


async def _stream(source: DataSourceAdapter, job_id: int, interval: float) -> None:
    follower = LogFollower(source, job_id, interval=interval)
    task = asyncio.create_task(follower.run())
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    try:
        await task
    except asyncio.CancelledError:
        click.echo(f"\n{SEPARATOR}")
        click.echo("🛑 Log streaming stopped")
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGTERM)


def _follow_logs(obj: CliContext, job_id: int, project_path: str | None) -> None:
    async def _run() -> None:
        path = project_path or await _require_project(obj.repo)
        source = DataSourceAdapter.from_config(obj.config, path)
        try:
            await _stream(source, job_id, obj.config.follow_interval)
        except GitLabError as e:
            raise click.ClickException(f"Failed to get job logs: {e}") from e
        finally:
            await source.aclose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        click.echo(f"\n{SEPARATOR}")
        click.echo("🛑 Log streaming stopped")


@main.command("test-real")
@click.pass_obj
def test_real(obj: CliContext) -> None:
    """Check the glab tool and the GitLab API connection."""
    config = obj.config

    async def _run() -> None:
        project_path = await _require_project(obj.repo)

        click.echo("Testing real GitLab connection using glab...")
        if not GlabCli.is_installed(config.glab_binary):
            raise click.ClickException(f"{config.glab_binary} is not installed")
        glab = GlabCli(project_path, binary=config.glab_binary)
        try:
            output = await glab.list_pipelines()
        except GitLabError as e:
            raise click.ClickException(f"Failed to run glab command: {e}") from e

        click.echo("✅ glab command successful!")
        click.echo("📋 Raw pipeline data:")
        click.echo(output)
        parsed = parse_pipeline_listing(output)
        click.echo(f"✅ Parsed {len(parsed)} pipelines!")
        for p in parsed[:5]:
            click.echo(f"  Pipeline #{p.id}: {p.status} ({p.ref})")

        try:
            project = parse_project_json(await glab.project())
        except GitLabError as e:
            logger.warning("Failed to look up project %s: %s", project_path, e)
        else:
            click.echo(f"📊 Project: {project.path_with_namespace or project_path} (ID {project.id})")

        if not config.has_token:
            click.echo("ℹ️  No GitLab token configured, skipping API check")
            return
        click.echo(f"Testing GitLab API at {config.api_url}...")
        try:
            async with GitLabClient(config) as client:
                user = User.from_api(await client.get_current_user())
        except (GitLabError, httpx.HTTPError) as e:
            raise click.ClickException(f"GitLab API check failed: {e}") from e
        click.echo(f"✅ Authenticated as @{user.username}")

    asyncio.run(_run())


@main.command()
@click.pass_context
def demo(ctx: click.Context) -> None:
    """Start the interactive UI with sample data."""
    click.echo("🎯 Demo Mode: Using mock GitLab data for demonstration")
    click.echo("📝 This shows how glab-tui works with real GitLab projects")
    click.echo("")
    level = logging.getLogger().getEffectiveLevel()
    run_interactive(ctx.obj, level, demo=True)


@main.command("help")
@click.pass_context
def help_(ctx: click.Context) -> None:
    """Show this help."""
    click.echo(ctx.parent.get_help())


@main.command()
def version() -> None:
    """Show the version."""
    click.echo(f"glab-tui v{__version__}")
