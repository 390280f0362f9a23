"""JSON-file persistence for project relation graphs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

from .artifact import ProjectRelations, write_json_atomic
from .utils.logger import app_logger


class GraphStore:
    """JSON-file storage for project relation graphs.

    One document per project at ``<root>/projects/<project_id>/relations.json``.
    Saves always overwrite the whole document. Loaded graphs are cached until
    ``invalidate`` or ``clear`` is called, or the project is saved again.
    """

    def __init__(self, root: Path):
        self.logger = app_logger.bind(component="graph_store")
        self.root = Path(root)
        self._cache: Dict[str, ProjectRelations] = {}

    def path_for(self, project_id: str) -> Path:
        return self.root / "projects" / project_id / "relations.json"

    def load(self, project_id: str) -> Optional[ProjectRelations]:
        """Load a stored graph, ``None`` if absent or unreadable."""
        if project_id in self._cache:
            return self._cache[project_id]

        path = self.path_for(project_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                relations = ProjectRelations.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            self.logger.error(f"Error loading relations from {path}: {e}")
            return None

        self._cache[project_id] = relations
        return relations

    def save(self, relations: ProjectRelations) -> Path:
        path = write_json_atomic(relations.to_json(), self.path_for(relations.project_id))
        self._cache[relations.project_id] = relations
        self.logger.debug(f"Saved relations to {path}")
        return path

    def invalidate(self, project_id: str) -> None:
        self._cache.pop(project_id, None)

    def clear(self) -> None:
        self._cache.clear()
