"""Exceptions raised while creating a project."""

from pathlib import Path
from typing import Optional


class CreateAppError(Exception):
    """Base class for expected, user-facing failures."""


class InvalidProjectNameError(CreateAppError):
    """The project name is missing or contains unsupported characters."""


class ProjectExistsError(CreateAppError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f'Directory "{self.path.name}" already exists.')


class TemplateFetchError(CreateAppError):
    """The template could not be retrieved from its source."""

    def __init__(self, source: str, detail: Optional[str] = None):
        self.source = source
        self.detail = detail
        super().__init__(f"Failed to download template from {source}")
