"""Parsers turning glab text and JSON output into typed records.

``glab ci list`` prints one pipeline per line, for example::

    Showing 30 pipelines on group/project (Page 1)

    State   IID     Ref     Created
    (running) • #1997196243	(#6866)	refs/merge-requests/406/head	(less than a minute ago)

Columns are tab separated. Everything here is tolerant: a malformed line or
JSON entry is dropped (or left at default values), never raised, so one bad
row cannot blank out a listing.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .exceptions import ParseError
from .models.pipelines import PIPELINE_STATUSES, UNKNOWN, Job, Pipeline
from .models.projects import Project

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "current-project"
HEADER_PREFIXES = ("Showing", "State", "---")
MR_REF_PREFIX = "refs/merge-requests/"

_DIGITS_RE = re.compile(r"[0-9]+")
_HEADER_PROJECT_RE = re.compile(r"^Showing\b.*?\bon\s+(\S+)")


def is_header_line(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(HEADER_PREFIXES)


def parse_project_name(output: str) -> str:
    """Extract the project name from the ``Showing N pipelines on group/project`` banner."""
    for line in output.splitlines():
        m = _HEADER_PROJECT_RE.match(line.strip())
        if m:
            path = m.group(1).rstrip(".")
            return path.rsplit("/", 1)[-1] or DEFAULT_PROJECT_NAME
    return DEFAULT_PROJECT_NAME


def parse_status(line: str) -> str:
    """Return the first known ``(status)`` keyword in the status column.

    Only the text before the first ``#`` is searched, so a branch named
    ``fix/running-tests`` cannot be mistaken for a running pipeline.
    """
    status_field = line.split("#", 1)[0]
    for status in PIPELINE_STATUSES:
        if f"({status})" in status_field:
            return status
    return UNKNOWN


def parse_pipeline_id(line: str) -> int:
    idx = line.find("#")
    if idx == -1:
        return 0
    m = _DIGITS_RE.match(line, idx + 1)
    return int(m.group()) if m else 0


def normalize_ref(ref: str) -> str:
    """Shorten ``refs/merge-requests/<N>/head`` to ``MR-<N>``."""
    if ref.startswith(MR_REF_PREFIX):
        parts = ref.split("/")
        return f"MR-{parts[2]}"
    return ref


def parse_pipeline_line(line: str, project_name: str = DEFAULT_PROJECT_NAME) -> Pipeline | None:
    """Parse one listing row; returns None for headers and rows without a usable ID."""
    line = line.strip()
    if is_header_line(line) or "#" not in line:
        return None

    pipeline_id = parse_pipeline_id(line)
    if pipeline_id == 0:
        return None

    fields = line.split("\t")
    ref = UNKNOWN
    if len(fields) >= 3:
        ref = normalize_ref(fields[2].strip()) or UNKNOWN
    time_ago = ""
    if len(fields) >= 4:
        time_ago = fields[3].strip().removeprefix("(").removesuffix(")")

    return Pipeline(
        id=pipeline_id,
        status=parse_status(line),
        ref=ref,
        project_name=project_name,
        time_ago=time_ago,
    )


def parse_pipeline_listing(output: str) -> list[Pipeline]:
    project_name = parse_project_name(output)
    pipelines: list[Pipeline] = []
    for line in output.splitlines():
        pipeline = parse_pipeline_line(line, project_name)
        if pipeline is not None:
            pipelines.append(pipeline)
        elif "#" in line and not is_header_line(line):
            logger.debug("Skipping unparsable pipeline row: %r", line)
    return pipelines


# ════════════════════════════════════════════════════════════════════
# JSON output (glab api ...)
# ════════════════════════════════════════════════════════════════════


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def job_from_mapping(data: dict[str, Any]) -> Job:
    """Build a Job, leaving any field of the wrong type at its zero value."""
    raw_id = _number(data.get("id"))
    return Job(
        id=int(raw_id) if raw_id is not None else 0,
        name=_string(data.get("name")),
        status=_string(data.get("status")) or UNKNOWN,
        stage=_string(data.get("stage")),
        duration=_number(data.get("duration")),
        web_url=_string(data.get("web_url")),
    )


def jobs_from_payload(payload: Any) -> list[Job]:
    """Keep the valid jobs of a decoded job array, from glab or the REST API."""
    if not isinstance(payload, list):
        logger.warning("Expected a JSON array of jobs, got %s", type(payload).__name__)
        return []
    jobs = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        job = job_from_mapping(entry)
        if job.is_valid:
            jobs.append(job)
        else:
            logger.debug("Dropping job entry without id or name: %.200r", entry)
    return jobs


def parse_jobs_json(text: str) -> list[Job]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse jobs JSON: %s (%.200s)", e, text)
        return []
    return jobs_from_payload(payload)


def pipeline_from_mapping(
    data: dict[str, Any], project_id: int = 0, project_name: str = ""
) -> Pipeline:
    """Build a Pipeline from an API object with the same per-field tolerance as jobs."""
    raw_id = _number(data.get("id"))
    return Pipeline(
        id=int(raw_id) if raw_id is not None else 0,
        status=_string(data.get("status")) or UNKNOWN,
        ref=normalize_ref(_string(data.get("ref"))) or UNKNOWN,
        project_id=project_id,
        project_name=project_name,
        web_url=_string(data.get("web_url")),
        created_at=_string(data.get("created_at")),
    )


def _parse_object(text: str, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse {what} JSON: {e}"
        raise ParseError(msg) from e
    if not isinstance(payload, dict):
        msg = f"Expected a JSON object for {what}, got {type(payload).__name__}"
        raise ParseError(msg)
    return payload


def parse_job_json(text: str) -> Job:
    return job_from_mapping(_parse_object(text, "job"))


def parse_project_json(text: str) -> Project:
    return project_from_mapping(_parse_object(text, "project"))


def project_from_mapping(data: dict[str, Any]) -> Project:
    raw_id = _number(data.get("id"))
    return Project(
        id=int(raw_id) if raw_id is not None else 0,
        name=_string(data.get("name")),
        name_with_namespace=_string(data.get("name_with_namespace")),
        path_with_namespace=_string(data.get("path_with_namespace")),
        web_url=_string(data.get("web_url")),
    )
