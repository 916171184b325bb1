import os
from typing import Optional

from .base import PackageManager
from .go import GoManager

MANAGERS = [
    GoManager(),
]


def detect_manager(path: str = ".") -> Optional[PackageManager]:
    """
    Returns the manager for the project containing ``path``.

    Parent directories count: ``go mod graph`` runs from any subdirectory
    of a module. A missing ``path`` matches nothing.
    """
    if not os.path.isdir(path):
        return None

    current = os.path.abspath(path)
    while True:
        try:
            files = os.listdir(current)
        except OSError:
            files = []

        for manager in MANAGERS:
            if manager.detect(files):
                return manager

        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def default_manager() -> PackageManager:
    """Manager used to resolve remote packages."""
    return MANAGERS[0]
