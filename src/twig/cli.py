"""Command line interface for twig."""

import logging
from pathlib import Path
from typing import Annotated, Optional, Union

import typer
from rich.console import Console

from twig.git import Branch, BranchSet, GitError, GitRepo, is_inside_repository
from twig.machine import Canceled, Finished
from twig.tui import BranchPickerApp, StashPickerApp

app = typer.Typer(help="Interactive git branch picker")
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("twig")

DEBUG_LOG = "debug.log"


def configure_logging(debug: bool) -> None:
    """Send debug tracing to ``debug.log`` when asked to."""
    if not debug:
        return
    handler = logging.FileHandler(DEBUG_LOG)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance, exiting when there is none."""
    if not is_inside_repository(path):
        err_console.print("must be in Git repo")
        raise typer.Exit(code=1)
    try:
        return GitRepo(path)
    except GitError as err:
        err_console.print(f"Error: {err}")
        raise typer.Exit(code=1) from err


def run_branch_picker(repo: GitRepo, branch_set: BranchSet) -> Optional[Union[Finished, Canceled]]:
    return BranchPickerApp(repo, branch_set, logger=logging.getLogger("twig.machine")).run()


def run_stash_picker(changes: list[str]) -> Optional[list[str]]:
    """Return the paths to stash, or None when canceled."""
    picker = StashPickerApp(changes).run()
    if picker is None or picker.canceled:
        return None
    return picker.staged


def switch(repo: GitRepo, branch: Branch) -> None:
    """Stash and switch, passing git's output through."""
    result = repo.switch_to(branch)
    if result.stash_error:
        err_console.print(f"[yellow]Warning:[/yellow] {result.stash_error}")
    if result.stdout:
        console.print(result.stdout, markup=False, highlight=False)
    if result.stderr:
        err_console.print(result.stderr, markup=False, highlight=False)
    if not result.ok:
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    debug: Annotated[bool, typer.Option(help=f"Write debug tracing to {DEBUG_LOG}")] = False,
) -> None:
    """Pick a branch to switch to. i filters, j/k move, h/l page, x deletes, enter switches, esc quits."""
    configure_logging(debug)
    ctx.obj = path
    if ctx.invoked_subcommand is not None:
        return

    repo = get_repo(path)
    try:
        branch_set = repo.list_branches()
    except GitError as err:
        err_console.print(f"Error: {err}")
        raise typer.Exit(code=1) from err

    outcome = run_branch_picker(repo, branch_set)
    if not isinstance(outcome, Finished):
        console.print("user canceled...")
        return
    switch(repo, outcome.branch)


@app.command()
def stash(
    ctx: typer.Context,
    path: Annotated[Optional[Path], typer.Option(help="Path to git repository")] = None,
) -> None:
    """Pick changed files and stash only those."""
    repo = get_repo(path if path is not None else ctx.obj)
    try:
        changes = repo.list_changes()
    except GitError as err:
        err_console.print(f"Error: {err}")
        raise typer.Exit(code=1) from err

    staged = run_stash_picker(changes)
    if staged is None:
        console.print("user canceled")
        return
    if not staged:
        console.print("No changes selected")
        return
    try:
        repo.stash_paths(staged)
    except GitError as err:
        err_console.print(f"Error: {err}")
        raise typer.Exit(code=1) from err
    console.print("changes stashed!")


if __name__ == "__main__":
    app()
