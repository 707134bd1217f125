"""Pick changed files to stash."""

from typing import Optional

from twig.machine import KeyPress
from twig.selection import DEFAULT_PER_PAGE, SelectionList


class StashPicker:
    """Move changed paths into a "to stash" list.

    ``s`` moves the highlighted path over, ``u`` moves the first staged path
    back, Enter finishes and ``q`` or Ctrl-C cancels.
    """

    def __init__(self, changes: list[str], per_page: int = DEFAULT_PER_PAGE) -> None:
        self.changes = list(changes)
        self.staged: list[str] = []
        self.selection: SelectionList[str] = SelectionList(self.changes, per_page=per_page)
        self.canceled = False
        self.done = False

    def handle_key(self, key: KeyPress) -> None:
        if self.done:
            return
        name = key.key.lower()
        if name in ("ctrl+c", "q"):
            self.canceled = True
            self.done = True
        elif name == "s":
            self.stage(self.selection.index)
        elif name == "u":
            self.unstage()
        elif name in ("j", "down"):
            self.selection.move_down()
        elif name in ("k", "up"):
            self.selection.move_up()
        elif name == "enter":
            self.done = True

    def stage(self, index: Optional[int]) -> None:
        if index is None:
            return
        self.staged.append(self.changes.pop(index))
        self.selection.set_candidates(self.changes)

    def unstage(self) -> None:
        if not self.staged:
            return
        self.changes.append(self.staged.pop(0))
        self.selection.set_candidates(self.changes)
