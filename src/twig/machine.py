"""Keyboard driven state machine for the branch picker.

The machine never talks to git itself. Key presses and completed actions go in,
effects come out, and the driving loop runs the effects off the input loop and
feeds their results back through ``handle_result`` and ``apply_branch_set``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from twig.actions import ActionKind, ActionResult, PendingAction
from twig.fuzzy import fuzzy_filter
from twig.git import Branch, BranchSet, GitError
from twig.reconcile import Decision, decide
from twig.selection import DEFAULT_PER_PAGE, SelectionList

AFFIRMATIVE = ("yes", "y")


class Mode(Enum):
    """Interaction mode. Exactly one is active at a time."""

    NORMAL = "normal"
    FILTER_INSERT = "filter"
    CONFIRM_DESTRUCTIVE = "confirm"


@dataclass(frozen=True)
class KeyPress:
    """A key press.

    ``key`` is the key name (``"j"``, ``"enter"``, ``"ctrl+c"``...) and
    ``character`` the printable character it produces, if any.
    """

    key: str
    character: Optional[str] = None

    @property
    def printable(self) -> bool:
        return self.character is not None and len(self.character) == 1 and self.character.isprintable()


class LineBuffer:
    """Single line text input."""

    def __init__(self, value: str = "") -> None:
        self.value = value

    def __str__(self) -> str:
        return self.value

    def clear(self) -> None:
        self.value = ""

    def edit(self, key: KeyPress) -> bool:
        """Apply a key to the buffer. Returns True if the text changed."""
        if key.key == "backspace":
            if not self.value:
                return False
            self.value = self.value[:-1]
            return True
        if key.printable:
            self.value += key.character
            return True
        return False


@dataclass(frozen=True)
class Finished:
    branch: Branch


@dataclass(frozen=True)
class Canceled:
    pass


@dataclass(frozen=True)
class RunAction:
    """Run ``action`` against the gateway and report back with ``handle_result``."""

    action: PendingAction


@dataclass(frozen=True)
class RefreshBranches:
    """Re-list branches and report back with ``apply_branch_set``."""


Effect = Union[RunAction, RefreshBranches]


def is_yes(text: str) -> bool:
    return text.strip().lower() in AFFIRMATIVE


class BranchPicker:
    """Interaction state for picking, switching to and deleting branches."""

    def __init__(
        self,
        branch_set: BranchSet,
        logger: Optional[logging.Logger] = None,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.mode = Mode.NORMAL
        self.filter = LineBuffer()
        self.confirmation = LineBuffer()
        self.selection: SelectionList[Branch] = SelectionList(per_page=per_page)
        self.branch_set = branch_set
        self.pending: Optional[PendingAction] = None
        self.confirm_target: Optional[Branch] = None
        self.message: Optional[str] = None
        self.outcome: Optional[Union[Finished, Canceled]] = None
        self.apply_branch_set(branch_set)

    @property
    def done(self) -> bool:
        return self.outcome is not None

    @property
    def current(self) -> Optional[Branch]:
        return self.branch_set.current

    def handle_key(self, key: KeyPress) -> list[Effect]:
        """Process one key press."""
        if self.done:
            return []
        if key.key == "ctrl+c":
            self._cancel()
            return []
        if self.mode is Mode.CONFIRM_DESTRUCTIVE:
            return self._handle_confirm(key)
        if self.mode is Mode.FILTER_INSERT:
            return self._handle_filter(key)
        return self._handle_normal(key)

    def _handle_normal(self, key: KeyPress) -> list[Effect]:
        name = key.key.lower()
        if name == "i":
            self.mode = Mode.FILTER_INSERT
        elif name in ("j", "down"):
            self.selection.move_down()
        elif name in ("k", "up"):
            self.selection.move_up()
        elif name in ("l", "right"):
            self.selection.next_page()
        elif name in ("h", "left"):
            self.selection.prev_page()
        elif name == "escape":
            self._cancel()
        elif name == "x":
            return self._delete(self.selection.selected())
        elif name == "enter":
            self._finish()
        # "q" is reserved and deliberately does nothing
        return []

    def _handle_filter(self, key: KeyPress) -> list[Effect]:
        if key.key == "escape":
            self.mode = Mode.NORMAL
        elif key.key == "enter":
            self._finish()
        elif key.key == "up":
            self.selection.move_up()
        elif key.key == "down":
            self.selection.move_down()
        elif self.filter.edit(key):
            self._apply_filter()
        return []

    def _handle_confirm(self, key: KeyPress) -> list[Effect]:
        if key.key == "enter":
            effects: list[Effect] = []
            if is_yes(self.confirmation.value) and self.confirm_target is not None:
                effects = self._start(PendingAction(self.confirm_target, ActionKind.DELETE_FORCE))
            self._leave_confirm()
            return effects
        if key.key == "escape":
            self._leave_confirm()
        else:
            self.confirmation.edit(key)
        return []

    def handle_result(self, result: ActionResult) -> list[Effect]:
        """Reconcile a completed action into the state."""
        if self.done:
            self.logger.debug("discarding result for %s after exit", result.action.target)
            return []
        if self.pending == result.action:
            self.pending = None

        decision = decide(result)
        if decision is Decision.REFRESH:
            self.logger.debug("%s %s succeeded", result.action.kind.value, result.action.target)
            self.message = None
            return [RefreshBranches()]
        if decision is Decision.CONFIRM:
            self.mode = Mode.CONFIRM_DESTRUCTIVE
            self.confirm_target = result.action.target
            self.confirmation.clear()
            return []

        self.logger.error("%s %s failed: %s", result.action.kind.value, result.action.target, result.error)
        self.message = str(result.error)
        return []

    def apply_branch_set(self, branch_set: BranchSet) -> None:
        """Replace the branch set and reset the filter and cursor."""
        if self.done:
            return
        self.branch_set = branch_set
        self.filter.clear()
        self.selection.set_candidates(branch_set.branches)
        if self.mode is Mode.FILTER_INSERT:
            self.mode = Mode.NORMAL

    def refresh_failed(self, error: GitError) -> None:
        if self.done:
            return
        self.logger.error("refreshing branches failed: %s", error)
        self.message = str(error)

    def _apply_filter(self) -> None:
        self.selection.set_candidates(fuzzy_filter(self.filter.value, self.branch_set.branches, key=lambda b: b.name))

    def _delete(self, branch: Optional[Branch]) -> list[Effect]:
        if branch is None or self.pending is not None:
            return []
        return self._start(PendingAction(branch, ActionKind.DELETE_SAFE))

    def _start(self, action: PendingAction) -> list[Effect]:
        self.logger.debug("starting %s of %s", action.kind.value, action.target)
        self.pending = action
        self.message = None
        return [RunAction(action)]

    def _leave_confirm(self) -> None:
        self.confirmation.clear()
        self.confirm_target = None
        self.mode = Mode.NORMAL

    def _finish(self) -> None:
        if self.selection.finish():
            self.outcome = Finished(self.selection.selected())

    def _cancel(self) -> None:
        self.selection.cancel()
        self.outcome = Canceled()
