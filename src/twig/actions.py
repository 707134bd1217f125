"""Mutating gateway actions and their results."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from twig.git import Branch, GitError, GitRepo


class ActionKind(Enum):
    """Kind of mutating git command."""

    SWITCH = "switch"
    DELETE_SAFE = "delete"
    DELETE_FORCE = "force-delete"
    STASH = "stash"


@dataclass(frozen=True)
class PendingAction:
    """A command in flight against ``target``."""

    target: Branch
    kind: ActionKind


@dataclass(frozen=True)
class ActionResult:
    """Completed action. ``error`` is None on success."""

    action: PendingAction
    error: Optional[GitError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def perform(gateway: GitRepo, action: PendingAction) -> ActionResult:
    """Run ``action`` against the gateway.

    Git failures are captured in the result rather than raised, so this is safe
    to call from a worker thread.
    """
    try:
        if action.kind is ActionKind.DELETE_SAFE:
            gateway.delete_branch(action.target, force=False)
        elif action.kind is ActionKind.DELETE_FORCE:
            gateway.delete_branch(action.target, force=True)
        elif action.kind is ActionKind.STASH:
            gateway.stash()
        elif action.kind is ActionKind.SWITCH:
            result = gateway.switch_to(action.target)
            if not result.ok:
                raise GitError(f"Failed to switch to {action.target}: {result.stderr.strip()}")
    except GitError as err:
        return ActionResult(action, err)
    return ActionResult(action)
