"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from git import Actor, Repo

from twig.actions import perform
from twig.git import Branch, BranchSet, GitError, SwitchResult, UnmergedBranchError
from twig.machine import BranchPicker, Effect, RunAction


@pytest.fixture
def test_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a repository on ``main`` with merged and unmerged branches.

    Branches:
        main: current branch
        feature-x: one commit not in main
        feature-y: one commit not in main
        feature-merged: merged into main with a merge commit
    """
    local_path = tmp_path / "local"
    local_path.mkdir()
    local_repo = Repo.init(local_path)

    # Set up git config
    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    readme = local_path / "README.md"
    readme.write_text("# Test Repository")
    local_repo.index.add(["README.md"])
    local_repo.index.commit("Initial commit", author=author)

    # Ensure we're on main branch
    if "main" not in local_repo.heads:
        local_repo.create_head("main")
    main_branch = local_repo.heads.main
    main_branch.checkout()
    for head in list(local_repo.heads):
        if head.name != "main":
            local_repo.delete_head(head, force=True)

    def create_branch(name: str, content: str, merge: bool = False) -> None:
        """Create a branch with one commit, optionally merging it back."""
        main_branch.checkout()
        branch = local_repo.create_head(name)
        branch.checkout()

        test_file = local_path / f"{name}.txt"
        test_file.write_text(content)
        local_repo.index.add([f"{name}.txt"])
        local_repo.index.commit(f"Add {name}", author=author)

        main_branch.checkout()
        if merge:
            local_repo.git.merge(name, "--no-ff")

    create_branch("feature-x", "Unmerged content")
    create_branch("feature-y", "Other unmerged content")
    create_branch("feature-merged", "Merged content", merge=True)

    yield local_path


class FakeGateway:
    """In-memory stand-in for ``GitRepo``.

    Mutating calls are recorded in ``calls`` as ``(operation, branch name)``.
    """

    def __init__(self, current: str, branches: list[str], unmerged: Optional[set[str]] = None) -> None:
        self.current = current
        self.branches = list(branches)
        self.unmerged = set(unmerged or ())
        self.failures: dict[str, GitError] = {}
        self.list_error: Optional[GitError] = None
        self.calls: list[tuple[str, str]] = []

    def list_branches(self) -> BranchSet:
        if self.list_error is not None:
            raise self.list_error
        return BranchSet(Branch(self.current), tuple(Branch(name) for name in self.branches))

    def delete_branch(self, branch: Branch, force: bool = False) -> None:
        self.calls.append(("force-delete" if force else "delete", branch.name))
        if branch.name in self.failures:
            raise self.failures[branch.name]
        if not force and branch.name in self.unmerged:
            raise UnmergedBranchError(branch.name, f"Branch {branch.name} is not fully merged")
        self.branches.remove(branch.name)

    def stash(self) -> None:
        self.calls.append(("stash", ""))

    def switch_to(self, branch: Branch) -> SwitchResult:
        self.stash()
        self.calls.append(("switch", branch.name))
        self.branches.append(self.current)
        self.branches.remove(branch.name)
        self.current = branch.name
        return SwitchResult(status=0, stdout="", stderr=f"Switched to branch '{branch.name}'\n")


@pytest.fixture
def gateway() -> FakeGateway:
    """Gateway with ``main`` checked out and an unmerged ``feature-x``."""
    return FakeGateway("main", ["feature-x", "feature-y", "release"], unmerged={"feature-x"})


@pytest.fixture
def run_effects() -> Callable[[BranchPicker, FakeGateway, list[Effect]], None]:
    """Run effects synchronously, feeding results back like the app's loop does."""

    def run(machine: BranchPicker, gateway: FakeGateway, effects: list[Effect]) -> None:
        queue = list(effects)
        while queue:
            effect = queue.pop(0)
            if isinstance(effect, RunAction):
                queue.extend(machine.handle_result(perform(gateway, effect.action)))
                continue
            try:
                machine.apply_branch_set(gateway.list_branches())
            except GitError as err:
                machine.refresh_failed(err)

    return run
