"""Read access to the upstream indexer's files in the Memory Bank."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .utils.logger import app_logger


class MemoryBankReader:
    """Read-only access to the upstream indexer's files in the memory bank."""

    INDEX_FILE = "index-metadata.json"

    def __init__(self, root: Path):
        self.logger = app_logger.bind(component="memory_bank")
        self.root = Path(root)

    @property
    def index_path(self) -> Path:
        return self.root / self.INDEX_FILE

    def _read_json(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error reading {path}: {e}")
            return None
        if not isinstance(data, dict):
            self.logger.error(f"Unexpected content in {path}: expected a JSON object")
            return None
        return data

    def load_index(self) -> Optional[Dict[str, Any]]:
        """Load ``index-metadata.json``; ``None`` when missing or unreadable."""
        return self._read_json(self.index_path)

    def load_index_files(self) -> Optional[Dict[str, Any]]:
        index = self.load_index()
        if index is None:
            return None
        return index.get("files") or {}

    def load_project_config(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Return the ``_projectConfig`` block of a project's docs metadata, if it names a source path."""
        metadata_path = self.root / "projects" / project_id / "docs" / "metadata.json"
        data = self._read_json(metadata_path)
        if data is None:
            self.logger.debug(f"No metadata.json found for project {project_id}")
            return None

        config = data.get("_projectConfig") or {}
        if config.get("sourcePath"):
            self.logger.info(f"Found sourcePath in config: {config['sourcePath']}")
            return config
        return None
