"""Git operations — clone, pull and the shared sync procedure.

Both entry points run the same strictly ordered procedure on a working copy:

1. fetch every branch and tag from the remote
2. resolve the requested reference (or the remote's default branch)
3. force-checkout the resolved tree
4. point HEAD at the branch, or detach it at the commit
5. initialize and update submodules, depth first, skipping ``docs``

Any failing step aborts the rest. A failed clone removes its directory.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Callable, Iterator, Optional

from git import Commit, Head, Repo
from git.exc import (
    BadName,
    BadObject,
    GitCommandError,
    InvalidGitRepositoryError,
    NoSuchPathError,
)
from git.objects.submodule.base import Submodule

from pac.errors import FormatError, GitSyncError, PacError
from pac.models.reference import RefKind, Reference

logger = logging.getLogger(__name__)

FETCH_REFSPEC = "+refs/heads/*:refs/heads/*"
EXCLUDED_SUBMODULES = frozenset({"docs"})
FALLBACK_DEFAULT_BRANCHES = ("main", "master")

SubmoduleUpdater = Callable[[Repo, Submodule], Repo]


def clone(
    remote: str,
    path: str | Path,
    reference: Optional[Reference] = None,
    timeout: Optional[float] = None,
) -> Commit:
    """Create a repository at *path* and sync it to *reference*.

    On any failure the directory is removed before the error propagates, so
    a failed clone never leaves a half-populated plugin behind.

    Raises:
        GitSyncError: If the path already exists, a git step fails or the
            partial clone cannot be removed.
        FormatError: If the reference cannot be resolved.
    """
    path = Path(path)
    if path.exists():
        raise GitSyncError(f"Refusing to clone into existing path {path}")

    try:
        with _translate_errors("clone", path):
            path.parent.mkdir(parents=True, exist_ok=True)
            repo = Repo.init(path)
            return sync_repo(repo, remote, reference, timeout=timeout)
    except Exception as e:
        try:
            remove_tree(path)
        except OSError as cleanup:
            raise GitSyncError(f"Could not remove partial clone {path}: {cleanup}") from e
        raise


def pull(
    remote: str,
    path: str | Path,
    reference: Optional[Reference] = None,
    timeout: Optional[float] = None,
) -> Commit:
    """Sync the existing repository at *path*; the directory is kept on failure."""
    path = Path(path)
    with _translate_errors("pull", path):
        repo = Repo(path)
        return sync_repo(repo, remote, reference, timeout=timeout)


def sync_repo(
    repo: Repo,
    remote: str,
    reference: Optional[Reference] = None,
    timeout: Optional[float] = None,
) -> Commit:
    """Bring *repo* to *reference* as fetched from *remote*. Returns the checked-out commit."""
    where = repo.working_tree_dir
    logger.debug("Fetching %s into %s", remote, where)
    fetch(repo, remote, timeout=timeout)

    if reference is None:
        reference = Reference.branch(remote_default_branch(repo, remote, timeout=timeout))
        logger.debug("Default branch of %s is %s", remote, reference.value)

    commit = resolve(repo, reference)
    checkout(repo, commit)
    update_head(repo, reference, commit)
    count = update_submodules(repo, partial(_update_submodule, timeout=timeout))
    logger.debug("%s at %s (%s), %d submodule(s)", where, commit.hexsha[:12], reference, count)
    return commit


def fetch(repo: Repo, remote: str, timeout: Optional[float] = None) -> None:
    """Fetch all branches and tags; the working tree is not touched."""
    repo.git.fetch(
        remote,
        FETCH_REFSPEC,
        tags=True,
        force=True,
        update_head_ok=True,
        kill_after_timeout=timeout,
    )


def remote_default_branch(repo: Repo, remote: str, timeout: Optional[float] = None) -> str:
    """Name of the branch the remote's HEAD points to."""
    output = repo.git.ls_remote("--symref", remote, "HEAD", kill_after_timeout=timeout)
    for line in output.splitlines():
        if not line.startswith("ref:"):
            continue
        target = line[len("ref:"):].strip().split("\t", 1)[0]
        if target.startswith("refs/heads/"):
            return target[len("refs/heads/"):]

    # servers that do not advertise symrefs
    local = {head.name for head in repo.heads}
    for candidate in FALLBACK_DEFAULT_BRANCHES:
        if candidate in local:
            return candidate
    raise GitSyncError(f"Could not determine the default branch of {remote}")


def resolve(repo: Repo, reference: Reference) -> Commit:
    """Turn *reference* into a commit object, peeling annotated tags."""
    try:
        return repo.commit(reference.refname)
    except (BadName, BadObject, ValueError) as e:
        raise FormatError(f"Can not resolve {reference}") from e


def checkout(repo: Repo, commit: Commit) -> None:
    """Force the index and working tree to *commit*'s tree, dropping local edits."""
    repo.git.read_tree("--reset", "-u", commit.hexsha)
    repo.git.checkout_index("--all", "--force")


def update_head(repo: Repo, reference: Reference, commit: Commit) -> None:
    """Track the branch for branch references, detach HEAD otherwise.

    Tags detach as well: a tag is not something HEAD can advance along.
    """
    if reference.kind == RefKind.BRANCH:
        repo.head.set_reference(Head(repo, reference.refname))
    else:
        repo.head.set_reference(commit)


def update_submodules(repo: Repo, updater: Optional[SubmoduleUpdater] = None) -> int:
    """Initialize and update every submodule reachable from *repo*.

    Walks with an explicit stack. A submodule whose ``(url, commit)`` already
    appears among its own ancestors is a cycle and is not entered again.

    Returns:
        Number of submodules updated.
    """
    updater = updater or _update_submodule
    pending: list[tuple[Repo, frozenset]] = [(repo, frozenset())]
    count = 0

    while pending:
        current, ancestors = pending.pop()
        for submodule in current.submodules:
            if submodule.name in EXCLUDED_SUBMODULES:
                logger.debug("Skipping submodule %s", submodule.name)
                continue
            key = (submodule.url, submodule.hexsha)
            if key in ancestors:
                logger.warning(
                    "Submodule %s points back to %s, not descending", submodule.name, submodule.url
                )
                continue
            child = updater(current, submodule)
            count += 1
            pending.append((child, ancestors | {key}))

    return count


def _update_submodule(
    repo: Repo, submodule: Submodule, timeout: Optional[float] = None
) -> Repo:
    repo.git.submodule(
        "update", "--init", "--force", "--", submodule.path, kill_after_timeout=timeout
    )
    return submodule.module()


def remove_tree(path: Path) -> None:
    """Delete *path* recursively; removal errors propagate."""
    if path.exists():
        shutil.rmtree(path)


@contextmanager
def _translate_errors(action: str, path: Path) -> Iterator[None]:
    try:
        yield
    except PacError:
        raise
    except GitCommandError as e:
        raise GitSyncError(f"{action} {path}: {_command_message(e)}") from e
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise GitSyncError(f"Not a git repository: {e}") from e


def _command_message(err: GitCommandError) -> str:
    # str(err) repeats the whole command line; the stderr text is what matters
    text = (err.stderr or "").strip()
    if text.startswith("stderr:"):
        text = text[len("stderr:"):].strip().strip("'").strip()
    return text or str(err)
