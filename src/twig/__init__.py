"""Interactive git branch picker.

Features:
- List local branches and fuzzy filter them as you type
- Switch to the chosen branch, stashing local changes first
- Delete branches, with a force confirmation for unmerged ones
- Interactive partial stash of changed files
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
