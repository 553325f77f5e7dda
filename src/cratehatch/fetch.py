"""
cratehatch.fetch - Locating Template Sources
============================================

Turns a template source into a local directory the generator can read.
Three kinds of sources exist:

    git URL     ``git@host:owner/repo(.git)`` or ``http(s)://host/owner/repo``,
                cloned into ``<cache>/<owner>/<repo>``; a later run fetches
                and hard resets the existing clone instead
    local path  any existing directory, used in place
    bookmark    a named entry in ``settings.toml`` pointing to either of the
                above, optionally with a sub-folder and argument defaults

Git is driven through the ``git`` executable. Only the cache clone is ever
written to; the generated project is never touched by git.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from cratehatch.errors import FetchError
from cratehatch.models import Bookmark, GlobalSettings
from cratehatch.settings import cache_dir


logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ("git@", "http://", "https://")


# =============================================================================
# URL Handling
# =============================================================================

def is_remote(source: str) -> bool:
    """Whether ``source`` looks like a git URL rather than a local path."""
    return source.startswith(REMOTE_PREFIXES)


def find_repo_name(url: str) -> str | None:
    """
    Extract ``owner/repo`` from a typical git URL.

    Parameters
    ----------
    url : str
        SSH (``git@host:owner/repo.git``) or HTTP(S)
        (``https://host/owner/repo.git``) URL; the ``.git`` suffix is
        optional.

    Returns
    -------
    str | None
        The ``owner/repo`` part, or ``None`` if the URL has another shape.

    Examples
    --------
    >>> find_repo_name("git@github.com:rust-lang/git2-rs.git")
    'rust-lang/git2-rs'
    >>> find_repo_name("https://github.com/rust-lang/git2-rs")
    'rust-lang/git2-rs'
    >>> find_repo_name("https://github.com/rust-lang") is None
    True
    """
    if url.startswith("git@"):
        _, sep, name = url.partition(":")
    elif url.startswith(("http://", "https://")):
        _, sep, name = url.split("://", 1)[1].partition("/")
    else:
        return None

    if not sep:
        return None
    name = name.removesuffix(".git")
    if name.count("/") != 1 or "" in name.split("/"):
        return None
    return name


# =============================================================================
# Git
# =============================================================================

def _git(*args: str, cwd: Path | None = None, ssh_key: Path | None = None) -> None:
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    if ssh_key is not None:
        key = shlex.quote(str(ssh_key.expanduser()))
        env["GIT_SSH_COMMAND"] = f"ssh -i {key} -o IdentitiesOnly=yes"

    logger.debug("Running git %s", " ".join(args))
    try:
        subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError:
        raise FetchError("git is not installed or not on PATH") from None
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
        raise FetchError(f"git {args[0]} failed: {detail}") from e


def clone_or_update(url: str, target: Path, ssh_key: Path | None = None) -> None:
    """
    Clone ``url`` into ``target``, or update an existing clone there.

    An existing clone is moved to the remote's current HEAD; local changes
    and untracked files in it are discarded.

    Raises
    ------
    FetchError
        If git is missing or any git command fails.
    """
    if (target / ".git").exists():
        logger.info("Updating %s", target)
        _git("fetch", "--depth", "1", url, "HEAD", cwd=target, ssh_key=ssh_key)
        _git("reset", "--hard", "FETCH_HEAD", cwd=target)
        _git("clean", "-fdx", cwd=target)
        return

    logger.info("Cloning %s into %s", url, target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FetchError(f"failed creating `{target.parent}`: {e.strerror or e}") from e
    _git("clone", "--depth", "1", "--", url, str(target), ssh_key=ssh_key)


# =============================================================================
# Template Sources
# =============================================================================

def _with_folder(root: Path, folder: str | None) -> Path:
    if not folder:
        return root
    path = root / folder
    if not path.is_dir():
        raise FetchError(f"folder `{folder}` not found in `{root}`")
    return path


def resolve_local_template(path: Path, folder: str | None = None) -> Path:
    """
    Use a local directory as template source.

    Raises
    ------
    FetchError
        If ``path`` (or ``path / folder``) is not a directory.
    """
    path = path.expanduser()
    if not path.is_dir():
        raise FetchError(f"`{path}` is not a directory")
    return _with_folder(path, folder)


def fetch_git_template(
    url: str,
    *,
    folder: str | None = None,
    ssh_key: Path | None = None,
    cache: Path | None = None,
) -> Path:
    """
    Clone or update a remote template and return its local root.

    Parameters
    ----------
    url : str
        Git URL of the template repository.

    folder : str | None
        Sub-folder of the repository that holds the template.

    ssh_key : Path | None
        Private key for SSH remotes.

    cache : Path | None
        Cache directory; defaults to ``cache_dir()``.

    Returns
    -------
    Path
        Directory containing the template's ``.hatch.toml``.

    Raises
    ------
    FetchError
        If the URL can't be parsed, the clone fails or the folder is missing.
    """
    repo_name = find_repo_name(url)
    if repo_name is None:
        raise FetchError(f"can't determine repo name from git URL `{url}`")

    target = (cache or cache_dir()) / repo_name
    clone_or_update(url, target, ssh_key)
    return _with_folder(target, folder)


def resolve_bookmark(bookmark: Bookmark, settings: GlobalSettings) -> Path:
    """
    Locate the template a bookmark points to.

    Raises
    ------
    FetchError
        If the repository is neither a git URL nor a local directory, or
        fetching it fails.
    """
    if is_remote(bookmark.repository):
        return fetch_git_template(
            bookmark.repository,
            folder=bookmark.folder,
            ssh_key=settings.git.ssh_key,
        )

    path = Path(bookmark.repository).expanduser()
    if path.is_dir():
        return _with_folder(path, bookmark.folder)

    msg = (
        f"bookmark repository `{bookmark.repository}` is neither a remote git "
        "URL nor a local directory"
    )
    raise FetchError(msg)
