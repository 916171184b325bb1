from abc import ABC, abstractmethod
from typing import List

from deptree.core.graph import Edges


class PackageManager(ABC):
    """Base class inherited by all package manager adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Friendly ecosystem name (e.g., Go Modules)."""
        pass

    @property
    @abstractmethod
    def lock_files(self) -> List[str]:
        """Filenames marking a project this manager understands."""
        pass

    def detect(self, files: List[str]) -> bool:
        """
        Returns True if this manager supports a directory holding ``files``.
        Default implementation checks for exact match in lock_files.
        """
        for lock_file in self.lock_files:
            if lock_file in files:
                return True
        return False

    @abstractmethod
    def get_dependencies(self, work_dir: str) -> Edges:
        """Runs the graph command in ``work_dir`` and returns its edges."""
        pass

    @abstractmethod
    def setup_package(self, work_dir: str, package: str) -> None:
        """Prepares an empty ``work_dir`` so that it depends on ``package``."""
        pass
