"""Full screen front-ends built on textual."""

import logging
from typing import Optional, Union

from rich.text import Text
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from twig.actions import ActionResult, PendingAction, perform
from twig.git import BranchSet, GitError, GitRepo
from twig.machine import BranchPicker, Canceled, Effect, Finished, KeyPress, Mode, RefreshBranches, RunAction
from twig.stash import StashPicker

CURSOR = "█"


class ActionCompleted(Message):
    """A gateway action finished on a worker."""

    def __init__(self, result: ActionResult) -> None:
        super().__init__()
        self.result = result


class BranchesLoaded(Message):
    def __init__(self, branch_set: BranchSet) -> None:
        super().__init__()
        self.branch_set = branch_set


class RefreshFailed(Message):
    def __init__(self, error: GitError) -> None:
        super().__init__()
        self.error = error


def key_press(event: events.Key) -> KeyPress:
    """Translate a textual key event."""
    return KeyPress(event.key, event.character if event.is_printable else None)


def render_rows(rows: list[tuple[int, str]], highlighted: Optional[int]) -> Text:
    text = Text()
    for index, label in rows:
        if index == highlighted:
            text.append(f"[{index + 1}] {label}\n", style="bold cyan")
        else:
            text.append(f" {index + 1}. {label}\n")
    return text


def render_branch_picker(machine: BranchPicker) -> Text:
    """Render the picker state."""
    text = Text()
    if machine.mode is Mode.CONFIRM_DESTRUCTIVE:
        name = machine.confirm_target.name if machine.confirm_target else ""
        text.append(f"Branch {name} is not fully merged,\n", style="bold yellow")
        text.append("are you sure you want to delete? (y/n) ")
        text.append(machine.confirmation.value)
        text.append(CURSOR)
        return text

    current = machine.current.name if machine.current else "(no branch)"
    text.append(f" on branch {current} \n", style="bold")
    if machine.mode is Mode.FILTER_INSERT:
        text.append(f"> {machine.filter.value}{CURSOR}\n")
    else:
        text.append(f"> {machine.filter.value}\n", style="dim")

    selection = machine.selection
    rows = [(index, branch.name) for index, branch in selection.page()]
    if rows:
        text.append_text(render_rows(rows, selection.index))
        text.append(str(selection.selected()), style="magenta")
        text.append("\n")
    else:
        text.append("  no matching branches\n", style="dim")

    if machine.pending is not None:
        text.append(f"{machine.pending.kind.value} {machine.pending.target}...\n", style="dim")
    if machine.message:
        text.append(machine.message, style="red")
    return text


def render_stash_picker(picker: StashPicker) -> Text:
    selection = picker.selection
    text = render_rows([(index, path) for index, path in selection.page()], selection.index)
    text.append("\n")
    for number, path in enumerate(picker.staged, start=1):
        text.append(f" {number}. {path}\n", style="green")
    text.append("\ns stash  u undo  enter apply  q cancel", style="dim")
    return text


class BranchPickerApp(App[Optional[Union[Finished, Canceled]]]):
    """Pick a branch to switch to, deleting branches along the way.

    Key events are fed to a ``BranchPicker``. Git commands run on thread
    workers and come back as messages, so every state change happens on the
    app's message loop.
    """

    BINDINGS = [Binding("ctrl+c", "interrupt", show=False, priority=True)]

    def __init__(self, gateway: GitRepo, branch_set: BranchSet, logger: Optional[logging.Logger] = None) -> None:
        super().__init__()
        self.gateway = gateway
        self.machine = BranchPicker(branch_set, logger=logger)

    def compose(self) -> ComposeResult:
        yield Static(id="picker")

    def on_mount(self) -> None:
        self._render_state()

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._dispatch(key_press(event))

    def action_interrupt(self) -> None:
        self._dispatch(KeyPress("ctrl+c"))

    def on_action_completed(self, message: ActionCompleted) -> None:
        self._run_effects(self.machine.handle_result(message.result))
        self._update()

    def on_branches_loaded(self, message: BranchesLoaded) -> None:
        self.machine.apply_branch_set(message.branch_set)
        self._update()

    def on_refresh_failed(self, message: RefreshFailed) -> None:
        self.machine.refresh_failed(message.error)
        self._update()

    def _dispatch(self, key: KeyPress) -> None:
        self._run_effects(self.machine.handle_key(key))
        self._update()

    def _run_effects(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, RunAction):
                self._run_action(effect.action)
            elif isinstance(effect, RefreshBranches):
                self._refresh_branches()

    @work(thread=True, group="git")
    def _run_action(self, action: PendingAction) -> None:
        self.post_message(ActionCompleted(perform(self.gateway, action)))

    @work(thread=True, exclusive=True, group="refresh")
    def _refresh_branches(self) -> None:
        try:
            branch_set = self.gateway.list_branches()
        except GitError as err:
            self.post_message(RefreshFailed(err))
            return
        self.post_message(BranchesLoaded(branch_set))

    def _update(self) -> None:
        if self.machine.done:
            self.exit(self.machine.outcome)
            return
        self._render_state()

    def _render_state(self) -> None:
        self.query_one("#picker", Static).update(render_branch_picker(self.machine))


class StashPickerApp(App[StashPicker]):
    """Choose which changed files to stash."""

    BINDINGS = [Binding("ctrl+c", "interrupt", show=False, priority=True)]

    def __init__(self, changes: list[str]) -> None:
        super().__init__()
        self.picker = StashPicker(changes)

    def compose(self) -> ComposeResult:
        yield Static(id="stash")

    def on_mount(self) -> None:
        self._render_state()

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._dispatch(key_press(event))

    def action_interrupt(self) -> None:
        self._dispatch(KeyPress("ctrl+c"))

    def _dispatch(self, key: KeyPress) -> None:
        self.picker.handle_key(key)
        if self.picker.done:
            self.exit(self.picker)
            return
        self._render_state()

    def _render_state(self) -> None:
        self.query_one("#stash", Static).update(render_stash_picker(self.picker))
