"""Built-in sample data shown when no real data source is reachable."""

from __future__ import annotations

from .models.pipelines import Job, Pipeline


def sample_pipelines() -> list[Pipeline]:
    return [
        Pipeline(id=1996879423, status="running", ref="feat/zap-c3", project_id=123,
                 project_name="frontend-app"),
        Pipeline(id=1996867272, status="running", ref="MR-406", project_id=456,
                 project_name="backend-api"),
        Pipeline(id=1996733511, status="success", ref="fix/supplier-bug", project_id=123,
                 project_name="frontend-app"),
        Pipeline(id=1996723026, status="failed", ref="fix/supplier-bug", project_id=789,
                 project_name="data-pipeline"),
        Pipeline(id=1996719037, status="success", ref="main", project_id=456,
                 project_name="backend-api"),
        Pipeline(id=1996719038, status="running", ref="feature/auth", project_id=101,
                 project_name="auth-service"),
        Pipeline(id=1996719039, status="success", ref="main", project_id=789,
                 project_name="data-pipeline"),
    ]


def sample_jobs() -> list[Job]:
    return [
        Job(id=1001, name="npm-preparation", status="success", stage="prepare", duration=42.0),
        Job(id=1002, name="nx-mono-repo-affected", status="running", stage="build"),
        Job(id=1003, name="cloudflare-deploy", status="pending", stage="deploy"),
        Job(id=1004, name="zap-security-scan", status="pending", stage="test"),
        Job(id=1005, name="cypress-e2e", status="pending", stage="test"),
    ]


def sample_log(job: Job) -> str:
    return "\n".join(
        [
            "Demo Mode - Sample Job Log",
            "",
            f"Job: {job.name}",
            f"Status: {job.status}",
            f"Stage: {job.stage}",
            "",
            "[INFO] Starting job execution...",
            "[INFO] Installing dependencies...",
            "[INFO] Running tests...",
            "[SUCCESS] All tests passed!",
            "[INFO] Job completed successfully",
            "",
            "Real GitLab projects show the actual job trace here.",
        ]
    )


def streaming_preview(job: Job) -> str:
    """Shown in place of live streaming when the job list is sample data."""
    return "\n".join(
        [
            "🎯 Demo Mode - Real-time Streaming Preview",
            "",
            f"📋 Job: {job.name}",
            "🔥 In a real GitLab project, this would start:",
            f"   glab-tui logs --follow {job.id}",
            "",
            "🔄 Live streaming features:",
            "   • Real-time log updates every 2 seconds",
            "   • Auto-completion detection",
            "   • Graceful Ctrl+C exit",
            "   • Live job status monitoring",
            "",
            "💡 Try this in a real GitLab repository to see live streaming!",
            "📝 Example: cd /path/to/gitlab/project && glab-tui",
        ]
    )
