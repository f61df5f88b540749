"""Template fetchers.

A fetcher places the latest revision of a template into a scratch directory and
reports success as a boolean. Ordinary failures (no network, bad URL, missing
git) return ``False`` and leave a diagnostic in ``last_error``; anything
unexpected propagates to the caller.
"""

import os
import shutil
import ssl
import subprocess
import zipfile
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlparse

import httpx
import truststore

ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

GITHUB_HOSTS = ("github.com", "githubusercontent.com")


def _github_token(cli_token: str | None = None) -> str | None:
    """Return sanitized GitHub token (cli arg takes precedence) or None."""
    return ((cli_token or os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN") or "").strip()) or None


def _github_auth_headers(url: str, cli_token: str | None = None) -> dict:
    """Return Authorization header dict only for GitHub hosts with a non-empty token."""
    host = urlparse(url).hostname or ""
    if not any(host == h or host.endswith("." + h) for h in GITHUB_HOSTS):
        return {}
    token = _github_token(cli_token)
    return {"Authorization": f"Bearer {token}"} if token else {}


class TemplateFetcher(Protocol):
    last_error: Optional[str]

    def fetch(self, source: str, destination: Path) -> bool:
        ...


class GitTemplateFetcher:
    """Shallow-clone a git remote (latest revision only)."""

    def __init__(self, git: str = "git"):
        self.git = git
        self.last_error: Optional[str] = None

    def fetch(self, source: str, destination: Path) -> bool:
        self.last_error = None
        if shutil.which(self.git) is None:
            self.last_error = f"{self.git} not found on PATH"
            return False

        # Fail instead of waiting for credentials on an unknown remote
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            subprocess.run(
                [self.git, "clone", "--depth", "1", "--", source, str(destination)],
                check=True,
                capture_output=True,
                text=True,
                env=env,
            )
        except subprocess.CalledProcessError as e:
            self.last_error = (e.stderr or "").strip() or f"git clone exited with {e.returncode}"
            return False
        except OSError as e:
            self.last_error = str(e)
            return False
        return True


class LocalTemplateFetcher:
    """Use a template directory that already exists on disk."""

    def __init__(self):
        self.last_error: Optional[str] = None

    def fetch(self, source: str, destination: Path) -> bool:
        self.last_error = None
        local_path = Path(source).expanduser()
        if not local_path.is_dir():
            self.last_error = f"{local_path} is not a directory"
            return False
        if Path(destination).resolve().is_relative_to(local_path.resolve()):
            self.last_error = f"{local_path} contains the scratch directory {destination}"
            return False
        shutil.copytree(local_path, destination, symlinks=True)
        return True


def _flatten_single_root(path: Path) -> None:
    """Move the contents of a lone top-level directory up one level."""
    items = list(path.iterdir())
    if len(items) == 1 and items[0].is_dir():
        temp_move_dir = path.parent / f"{path.name}_temp"
        shutil.move(str(items[0]), str(temp_move_dir))
        path.rmdir()
        shutil.move(str(temp_move_dir), str(path))


class ArchiveTemplateFetcher:
    """Download a ``.zip`` archive of the template and extract it."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        skip_tls: bool = False,
        github_token: Optional[str] = None,
    ):
        self.client = client
        self.skip_tls = skip_tls
        self.github_token = github_token
        self.last_error: Optional[str] = None

    def fetch(self, source: str, destination: Path) -> bool:
        self.last_error = None
        destination = Path(destination)
        zip_path = destination.with_name(destination.name + ".zip")
        client = self.client or httpx.Client(verify=False if self.skip_tls else ssl_context)

        try:
            with client.stream(
                "GET",
                source,
                timeout=60,
                follow_redirects=True,
                headers=_github_auth_headers(source, self.github_token),
            ) as response:
                if response.status_code != 200:
                    self.last_error = f"Download failed with {response.status_code} for {source}"
                    return False
                with open(zip_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=8192):
                        f.write(chunk)

            destination.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(zip_path, "r") as zip_ref:
                zip_ref.extractall(destination)
            _flatten_single_root(destination)
            return True
        except httpx.HTTPError as e:
            self.last_error = f"{type(e).__name__}: {e}"
            return False
        except zipfile.BadZipFile as e:
            self.last_error = f"Invalid template archive: {e}"
            return False
        finally:
            if zip_path.exists():
                zip_path.unlink()
            if self.client is None:
                client.close()


def is_archive_url(source: str) -> bool:
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https") and parsed.path.lower().endswith(".zip")


def resolve_fetcher(
    source: str,
    *,
    skip_tls: bool = False,
    github_token: Optional[str] = None,
) -> TemplateFetcher:
    """Pick the fetcher for ``source``: local directory, zip archive URL, or git remote."""
    if source.strip() and Path(source).expanduser().is_dir():
        return LocalTemplateFetcher()
    if is_archive_url(source):
        return ArchiveTemplateFetcher(skip_tls=skip_tls, github_token=github_token)
    return GitTemplateFetcher()
