"""Turn completed actions into state machine decisions."""

from enum import Enum

from twig.actions import ActionKind, ActionResult


class Outcome(Enum):
    """Classification of a completed action."""

    SUCCESS = "success"
    UNMERGED = "unmerged"
    FAILURE = "failure"


class Decision(Enum):
    """What the state machine should do next."""

    REFRESH = "refresh"
    CONFIRM = "confirm"
    REPORT = "report"


def classify(result: ActionResult) -> Outcome:
    """Classify a result.

    An unmerged refusal only counts as such after a safe delete; anywhere else it
    is an ordinary failure.
    """
    if result.ok:
        return Outcome.SUCCESS
    if result.action.kind is ActionKind.DELETE_SAFE and result.error.needs_confirmation:
        return Outcome.UNMERGED
    return Outcome.FAILURE


def decide(result: ActionResult) -> Decision:
    return {
        Outcome.SUCCESS: Decision.REFRESH,
        Outcome.UNMERGED: Decision.CONFIRM,
        Outcome.FAILURE: Decision.REPORT,
    }[classify(result)]
