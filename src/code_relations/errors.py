"""Run-level errors raised by the relations analyzer.

Each error carries a message meant to be shown to the user as-is.
"""

from __future__ import annotations


class RelationsError(Exception):
    """Base class for fatal analysis errors."""


class StorageNotConfiguredError(RelationsError):
    def __init__(self) -> None:
        super().__init__(
            "Memory Bank path not configured. Set CODE_RELATIONS_MEMORY_BANK_PATH "
            "or pass --memory-bank."
        )


class IndexNotFoundError(RelationsError):
    def __init__(self, index_path: str) -> None:
        self.index_path = index_path
        super().__init__(
            f"No index metadata found at {index_path}. "
            "Ensure the project has been indexed with Memory Bank."
        )


class EmptyIndexError(RelationsError):
    def __init__(self) -> None:
        super().__init__("Index metadata contains no files. Re-index the project with Memory Bank.")


class NoProjectFilesError(RelationsError):
    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(
            f'No files found for project "{project_id}". Check that the project folder '
            "name matches or re-index the project to update sourcePath."
        )


class AnalysisInProgressError(RelationsError):
    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f'An analysis for project "{project_id}" is already running.')


class CompletionError(RelationsError):
    """Raised by a text generator when a completion cannot be produced."""
