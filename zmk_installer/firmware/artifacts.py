"""Firmware artifact retrieval through the GitHub CLI.

This module handles:
- Finding the newest successful Actions run on a branch (`gh run list`)
- Downloading that run's artifacts (`gh run download`)

Only one candidate run is ever inspected: the query itself narrows to the
most recent successful run.
"""

from __future__ import annotations

import json
import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any

from zmk_installer.errors import DownloadFailedError, NoSuccessfulBuildError
from zmk_installer.types import FirmwareBundle

logger = logging.getLogger(__name__)

RUN_FIELDS = "databaseId,displayTitle,createdAt,headSha"


def compose_run_list_command(repo: str, branch: str, gh: str = "gh") -> list[str]:
    """Compose the `gh run list` query for the latest successful run."""
    return [
        gh,
        "run",
        "list",
        "-R",
        repo,
        "--branch",
        branch,
        "--status",
        "success",
        "--limit",
        "1",
        "--json",
        RUN_FIELDS,
    ]


def compose_run_download_command(
    run_id: int, repo: str, dest_dir: Path, gh: str = "gh"
) -> list[str]:
    """Compose the `gh run download` command for a run's artifacts."""
    return [gh, "run", "download", str(run_id), "-R", repo, "-D", str(dest_dir)]


def find_latest_successful_run(
    repo: str,
    branch: str,
    *,
    gh: str = "gh",
    timeout: int | None = None,
) -> dict[str, Any]:
    """Return the newest successful run on a branch.

    Args:
        repo: GitHub repository (owner/name).
        branch: Branch name.
        gh: GitHub CLI executable.
        timeout: Query timeout in seconds.

    Returns:
        Run record as reported by `gh` (databaseId, displayTitle, ...).

    Raises:
        NoSuccessfulBuildError: If no successful run exists.
        DownloadFailedError: If the query itself fails.
    """
    cmd = compose_run_list_command(repo, branch, gh)
    logger.debug("Querying runs: %s", shlex.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise DownloadFailedError(
            f"Timed out querying builds for {repo}", reason="timeout"
        ) from e
    except OSError as e:
        raise DownloadFailedError(
            f"Failed to run {gh}: {e}", reason="execution_error"
        ) from e

    if result.returncode != 0:
        raise DownloadFailedError(
            f"Failed to query builds for {repo}: {result.stderr.strip()}",
            reason="query_failed",
        )

    try:
        runs = json.loads(result.stdout or "[]")
    except json.JSONDecodeError as e:
        raise DownloadFailedError(
            f"Unexpected response querying builds for {repo}",
            reason="query_failed",
        ) from e

    if not isinstance(runs, list):
        raise DownloadFailedError(
            f"Unexpected response querying builds for {repo}: {result.stdout.strip()}",
            reason="query_failed",
        )

    if not runs or not isinstance(runs[0], dict) or not runs[0].get("databaseId"):
        raise NoSuccessfulBuildError(repo, branch)

    return runs[0]


def download_run_artifacts(
    run_id: int,
    repo: str,
    dest_dir: Path,
    *,
    gh: str = "gh",
    timeout: int | None = None,
) -> Path:
    """Download all artifacts of a run into a directory.

    The directory is emptied first so a previous run's files never mix with
    the new bundle.

    Raises:
        DownloadFailedError: If the download fails.
    """
    if dest_dir.exists():
        shutil.rmtree(dest_dir)
    dest_dir.parent.mkdir(parents=True, exist_ok=True)

    cmd = compose_run_download_command(run_id, repo, dest_dir, gh)
    logger.debug("Downloading artifacts: %s", shlex.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise DownloadFailedError(
            f"Timed out downloading firmware for run {run_id}", reason="timeout"
        ) from e
    except OSError as e:
        raise DownloadFailedError(
            f"Failed to run {gh}: {e}", reason="execution_error"
        ) from e

    if result.returncode != 0:
        raise DownloadFailedError(
            f"Failed to download firmware: {result.stderr.strip()}",
            reason="gh_error",
        )

    return dest_dir


def fetch_firmware(
    repo: str,
    branch: str,
    dest_dir: Path,
    *,
    gh: str = "gh",
    timeout: int | None = None,
) -> FirmwareBundle:
    """Download the firmware bundle of the newest successful build.

    Args:
        repo: GitHub repository (owner/name).
        branch: Branch name.
        dest_dir: Directory to download into.
        gh: GitHub CLI executable.
        timeout: Timeout for each `gh` call in seconds.

    Returns:
        FirmwareBundle describing the download.

    Raises:
        NoSuccessfulBuildError: If no successful run exists.
        DownloadFailedError: If the query or download fails.
    """
    logger.info("Downloading latest firmware from %s (%s)...", repo, branch)

    run = find_latest_successful_run(repo, branch, gh=gh, timeout=timeout)
    run_id = int(run["databaseId"])
    title = run.get("displayTitle")
    logger.info("Using build run: %s", run_id)

    directory = download_run_artifacts(
        run_id, repo, dest_dir, gh=gh, timeout=timeout
    )

    return FirmwareBundle(
        repo=repo,
        branch=branch,
        run_id=run_id,
        directory=directory,
        title=str(title) if title else None,
    )


__all__ = [
    "compose_run_download_command",
    "compose_run_list_command",
    "download_run_artifacts",
    "fetch_firmware",
    "find_latest_successful_run",
]
