"""Favourite repositories persisted as JSON in the user config dir."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from add_skill.config import favourites_path
from add_skill.source import normalize_repo

logger = logging.getLogger(__name__)

DATA_VERSION = 1


@dataclass(frozen=True)
class Favourite:
    id: str
    repo: str
    description: str
    added_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Favourite:
        return cls(
            id=str(data["id"]),
            repo=str(data["repo"]),
            description=str(data.get("description", "")),
            added_at=str(data.get("addedAt", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "repo": self.repo, "description": self.description, "addedAt": self.added_at}


def _default_data() -> dict[str, Any]:
    return {"version": DATA_VERSION, "favourites": []}


def load_favourites(path: Path | None = None) -> dict[str, Any]:
    """Read the favourites document. Missing or malformed files load as an empty document."""
    path = path or favourites_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _default_data()
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable favourites file %s: %s", path, e)
        return _default_data()

    if not isinstance(data, dict) or not data.get("version") or not isinstance(data.get("favourites"), list):
        logger.warning("Ignoring malformed favourites file %s", path)
        return _default_data()
    return data


def save_favourites(data: dict[str, Any], path: Path | None = None) -> None:
    path = path or favourites_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def get_favourites(path: Path | None = None) -> list[Favourite]:
    favourites = []
    for entry in load_favourites(path)["favourites"]:
        try:
            favourites.append(Favourite.from_dict(entry))
        except (KeyError, TypeError):
            logger.debug("Skipping malformed favourite entry: %r", entry)
    return favourites


def add_favourite(repo: str, description: str, skip_normalize: bool = False, path: Path | None = None) -> Favourite:
    """Append a favourite and persist it. The repo is normalised unless skip_normalize is set."""
    data = load_favourites(path)
    favourite = Favourite(
        id=uuid.uuid4().hex[:8],
        repo=repo if skip_normalize else normalize_repo(repo),
        description=description,
        added_at=datetime.now(UTC).isoformat(),
    )
    data["favourites"].append(favourite.to_dict())
    save_favourites(data, path)
    return favourite


def remove_favourite(favourite_id: str, path: Path | None = None) -> bool:
    """Delete the favourite with the given id. Returns False if no such favourite exists."""
    data = load_favourites(path)
    remaining = [f for f in data["favourites"] if not (isinstance(f, dict) and f.get("id") == favourite_id)]
    if len(remaining) == len(data["favourites"]):
        return False
    data["favourites"] = remaining
    save_favourites(data, path)
    return True
