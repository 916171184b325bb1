from dataclasses import dataclass, field
from typing import Dict


@dataclass
class DependencyNode:
    name: str
    description: str = ""
    children: Dict[str, 'DependencyNode'] = field(default_factory=dict)

    # UI
    expanded: bool = False

    @property
    def module(self) -> str:
        return self.name.split("@", 1)[0]

    @property
    def version(self) -> str:
        if "@" not in self.name:
            return ""
        return self.name.split("@", 1)[1]

    def sorted_children(self):
        return [self.children[name] for name in sorted(self.children)]
