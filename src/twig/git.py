"""Git repository operations."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

CURRENT_MARKER = "* "
UNMERGED_MARKERS = ("not fully merged", "git branch -D")
NOTHING_TO_STASH = "No local changes to save"


class GitError(Exception):
    """Git operation error."""

    def __init__(self, message: str, needs_confirmation: bool = False) -> None:
        """Initialize error.

        Args:
            message: Error message
            needs_confirmation: Whether this error needs user confirmation to proceed
        """
        super().__init__(message)
        self.needs_confirmation = needs_confirmation


class GatewayUnavailable(GitError):
    """The branch listing could not be produced."""


class UnmergedBranchError(GitError):
    """A safe delete was refused because the branch is not fully merged."""

    def __init__(self, branch: str, message: str) -> None:
        super().__init__(message, needs_confirmation=True)
        self.branch = branch


@dataclass(frozen=True)
class Branch:
    """A local branch."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BranchSet:
    """Branches in listing order plus the checked out one.

    The current branch is never part of ``branches``.
    """

    current: Optional[Branch]
    branches: tuple[Branch, ...] = ()

    def names(self) -> list[str]:
        return [branch.name for branch in self.branches]

    def __contains__(self, name: object) -> bool:
        return any(branch.name == name for branch in self.branches)


@dataclass(frozen=True)
class SwitchResult:
    """Outcome of a switch, including the pass-through output."""

    status: int
    stdout: str
    stderr: str
    stash_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 0


def parse_branch_listing(text: str) -> BranchSet:
    """Parse the output of ``git branch``.

    The line starting with ``*`` is the current branch. Every other non-blank
    line, trimmed, is a candidate branch.
    """
    current: Optional[Branch] = None
    branches: list[Branch] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if line.startswith("*"):
            current = Branch(line.removeprefix(CURRENT_MARKER).lstrip("*").strip())
            continue
        branches.append(Branch(line.strip()))
    if current is not None:
        branches = [branch for branch in branches if branch != current]
    return BranchSet(current=current, branches=tuple(branches))


def is_unmerged_refusal(stderr: str) -> bool:
    """Check whether git refused a safe delete because of unmerged commits."""
    return any(marker.lower() in stderr.lower() for marker in UNMERGED_MARKERS)


def is_inside_repository(path: Path) -> bool:
    """Check that ``path`` is governed by a git repository."""
    try:
        Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False
    return True


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err

    def list_branches(self) -> BranchSet:
        """List local branches.

        Raises:
            GatewayUnavailable: If git could not list branches
        """
        try:
            output = self.repo.git.branch()
        except GitCommandError as err:
            raise GatewayUnavailable(f"Failed to list branches: {err}") from err
        return parse_branch_listing(output)

    def stash(self) -> None:
        """Stash uncommitted changes."""
        try:
            self.repo.git.stash()
        except GitCommandError as err:
            raise GitError(f"Failed to stash changes: {err}") from err

    def switch_to(self, branch: Branch) -> SwitchResult:
        """Switch to ``branch``, stashing local changes first.

        A failed stash does not prevent the switch attempt; it is logged and
        reported in the result instead.
        """
        stash_error = None
        try:
            self.stash()
        except GitError as err:
            logger.warning("stash before switch failed: %s", err)
            stash_error = str(err)

        logger.debug("switching to %s", branch.name)
        status, stdout, stderr = self.repo.git.switch(
            branch.name,
            with_extended_output=True,
            with_exceptions=False,
        )
        return SwitchResult(status=status, stdout=stdout, stderr=stderr, stash_error=stash_error)

    def delete_branch(self, branch: Branch, force: bool = False) -> None:
        """Delete a local branch.

        Args:
            branch: Branch to delete
            force: Delete even if the branch is not fully merged

        Raises:
            UnmergedBranchError: If a safe delete was refused for unmerged commits
            GitError: For any other failure
        """
        flag = "-D" if force else "-d"
        logger.debug("deleting branch %s with %s", branch.name, flag)
        try:
            self.repo.git.branch(flag, branch.name)
        except GitCommandError as err:
            stderr = str(err.stderr or "")
            if not force and is_unmerged_refusal(stderr):
                raise UnmergedBranchError(branch.name, f"Branch {branch.name} is not fully merged") from err
            raise GitError(f"Failed to delete branch {branch.name}: {stderr.strip() or err}") from err

    def list_changes(self) -> list[str]:
        """List changed paths from the porcelain status."""
        try:
            output = self.repo.git.status("--porcelain", "-z")
        except GitCommandError as err:
            raise GitError(f"Failed to read status: {err}") from err
        return parse_porcelain_status(output)

    def stash_paths(self, paths: list[str]) -> None:
        """Stash only ``paths``, untracked files included.

        Raises:
            GitError: If git failed or there was nothing to stash for ``paths``
        """
        try:
            _, stdout, stderr = self.repo.git.stash("push", "-a", "--", *paths, with_extended_output=True)
        except GitCommandError as err:
            raise GitError(f"Failed to stash changes: {err}") from err
        # git exits 0 when no pathspec had anything to stash
        if NOTHING_TO_STASH in stdout or NOTHING_TO_STASH in stderr:
            raise GitError(f"Failed to stash changes: nothing to stash for {', '.join(paths)}")


def parse_porcelain_status(text: str) -> list[str]:
    """Extract paths from ``git status --porcelain -z`` output.

    Entries are NUL separated and paths are not quoted. A rename or copy entry
    holds the new path and is followed by an extra field with the old one.
    """
    paths = []
    fields = iter(text.split("\0"))
    for entry in fields:
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        if "R" in status or "C" in status:
            next(fields, None)
        paths.append(path)
    return paths
