"""Shallow-clone source repositories into temporary directories."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from add_skill.config import CLONE_TIMEOUT

logger = logging.getLogger(__name__)

TEMP_PREFIX = "add-skill-"


class GitCloneError(RuntimeError):
    """Raised when a repository cannot be cloned."""


def clone_repo(url: str, ref: str | None = None, timeout: int = CLONE_TIMEOUT) -> Path:
    """Shallow-clone url (optionally at branch/tag ref) into a new temp dir and return its path."""
    tmp = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    cmd = ["git", "clone", "--depth", "1"]
    if ref:
        cmd += ["--branch", ref]
    cmd += [url, str(tmp)]

    logger.debug("Running %s", " ".join(cmd))
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout)
    except subprocess.CalledProcessError as e:
        shutil.rmtree(tmp, ignore_errors=True)
        detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
        raise GitCloneError(f"Failed to clone {url}: {detail}") from e
    except subprocess.TimeoutExpired as e:
        shutil.rmtree(tmp, ignore_errors=True)
        raise GitCloneError(f"Timed out after {timeout}s cloning {url}") from e
    except FileNotFoundError as e:
        shutil.rmtree(tmp, ignore_errors=True)
        raise GitCloneError("git executable not found on PATH") from e
    return tmp


def cleanup_temp_dir(path: str | Path) -> None:
    """Remove a clone directory. Refuses to touch anything outside the system temp dir."""
    target = Path(path).resolve()
    temp_root = Path(tempfile.gettempdir()).resolve()
    if temp_root not in target.parents:
        raise ValueError(f"Refusing to remove directory outside temp dir: {target}")
    shutil.rmtree(target)
