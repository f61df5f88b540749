"""Project initialisation: fetch a template, copy it and customise the copy."""

import json
import re
import shutil
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

from .errors import InvalidProjectNameError, ProjectExistsError, TemplateFetchError
from .fetch import TemplateFetcher
from .fs import copy_tree, remove_tree
from .tracker import StepTracker

DEFAULT_REPO = "https://github.com/buidl-renaissance/renaissance-app-block-template.git"
SCRATCH_PREFIX = "renaissance-template-"
PACKAGE_JSON = "package.json"
ENV_EXAMPLE = "env.example"
ENV_FILE = ".env"
INITIAL_VERSION = "0.1.0"

PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class Stage(str, Enum):
    IDLE = "idle"
    RESOLVING_INPUT = "resolving-input"
    FETCHING = "fetching"
    COPYING = "copying"
    CONFIGURING = "configuring"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class InitRequest:
    project_name: Optional[str]
    source: str = DEFAULT_REPO


@dataclass(frozen=True)
class CreatedProject:
    name: str
    path: Path
    env_file: Optional[Path] = None


def validate_project_name(name: Optional[str]) -> str:
    """Return ``name`` unchanged or raise :class:`InvalidProjectNameError`."""
    name = name or ""
    if not name:
        raise InvalidProjectNameError("Project name is required.")
    if not PROJECT_NAME_PATTERN.match(name):
        raise InvalidProjectNameError(
            "Project name can only contain letters, numbers, hyphens, and underscores."
        )
    return name


def update_package_json(project_path: Path, project_name: str) -> Path:
    """Set ``name`` and ``version`` in the project's package.json, keeping every other field."""
    package_json_path = project_path / PACKAGE_JSON
    package_json = json.loads(package_json_path.read_text(encoding="utf-8"))

    package_json["name"] = project_name
    package_json["version"] = INITIAL_VERSION

    package_json_path.write_text(
        json.dumps(package_json, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )
    return package_json_path


def create_env_file(project_path: Path) -> Optional[Path]:
    """Copy env.example to .env when the template ships one."""
    env_example_path = project_path / ENV_EXAMPLE
    if not env_example_path.is_file():
        return None
    env_path = project_path / ENV_FILE
    shutil.copyfile(env_example_path, env_path)
    return env_path


def _timestamp_token() -> str:
    return str(int(time.time() * 1000))


@contextmanager
def scratch_directory(temp_root: Path, token: str) -> Iterator[Path]:
    """Yield a scratch path under ``temp_root`` and remove it on every exit path."""
    scratch = Path(temp_root) / f"{SCRATCH_PREFIX}{token}"
    try:
        yield scratch
    finally:
        remove_tree(scratch)


@contextmanager
def fresh_destination(path: Path) -> Iterator[Path]:
    """Create ``path`` and remove it again if the block does not complete."""
    path.mkdir(parents=True)
    try:
        yield path
    except BaseException:
        remove_tree(path)
        raise


class ProjectInitializer:
    """Create a project directory from a template.

    The working directory and temporary root are passed in rather than read
    from the process so runs can be pointed at throwaway paths.
    """

    def __init__(
        self,
        fetcher: TemplateFetcher,
        *,
        cwd: Path,
        temp_root: Path,
        token_factory: Callable[[], str] = _timestamp_token,
    ):
        self.fetcher = fetcher
        self.cwd = Path(cwd)
        self.temp_root = Path(temp_root)
        self.token_factory = token_factory
        self.stage = Stage.IDLE

    def resolve(self, project_name: Optional[str]) -> Path:
        """Validate the name and return the destination, which must not exist yet."""
        self.stage = Stage.RESOLVING_INPUT
        try:
            name = validate_project_name(project_name)
            project_path = (self.cwd / name).resolve()
            if project_path.exists():
                raise ProjectExistsError(project_path)
        except Exception:
            self.stage = Stage.FAILED
            raise
        return project_path

    def create(self, request: InitRequest, *, tracker: StepTracker | None = None) -> CreatedProject:
        project_path = self.resolve(request.project_name)
        name = project_path.name

        try:
            with scratch_directory(self.temp_root, self.token_factory()) as scratch:
                self.stage = Stage.FETCHING
                if tracker:
                    tracker.start("fetch", request.source)
                if not self.fetcher.fetch(request.source, scratch):
                    if tracker:
                        tracker.error("fetch", "download failed")
                    raise TemplateFetchError(request.source, self.fetcher.last_error)
                if tracker:
                    tracker.complete("fetch")

                with fresh_destination(project_path):
                    self.stage = Stage.COPYING
                    if tracker:
                        tracker.start("copy")
                    copy_tree(scratch, project_path)
                    if tracker:
                        tracker.complete("copy", str(project_path))

                    remove_tree(scratch)
                    if tracker:
                        tracker.complete("cleanup", "scratch removed")

                    self.stage = Stage.CONFIGURING
                    if tracker:
                        tracker.start("configure")
                    update_package_json(project_path, name)
                    if tracker:
                        tracker.complete("configure", f"{PACKAGE_JSON} → {name}@{INITIAL_VERSION}")

                    env_file = create_env_file(project_path)
                    if tracker:
                        if env_file:
                            tracker.complete("env", f"{ENV_FILE} from {ENV_EXAMPLE}")
                        else:
                            tracker.skip("env", f"no {ENV_EXAMPLE}")
        except Exception as e:
            self.stage = Stage.FAILED
            if tracker:
                tracker.error("final", str(e))
            raise

        self.stage = Stage.DONE
        if tracker:
            tracker.complete("final", "project ready")
        return CreatedProject(name=name, path=project_path, env_file=env_file)
