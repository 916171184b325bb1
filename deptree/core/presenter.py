from typing import Dict, Iterator, List, Optional

from deptree.core.model import DependencyNode

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def _label(name: str, description: str, show_desc: bool) -> str:
    if show_desc and description:
        return f"{name} - {description}"
    return name


def tree_lines(root: DependencyNode, show_desc: bool = False) -> Iterator[str]:
    yield _label(root.name, root.description, show_desc)

    # (node, prefix) pairs; children are pushed in reverse so they pop sorted
    stack = [(child, "", i == len(root.children) - 1)
             for i, child in enumerate(root.sorted_children())][::-1]

    while stack:
        node, prefix, is_last = stack.pop()
        connector = LAST_BRANCH if is_last else BRANCH
        yield f"{prefix}{connector}{_label(node.name, node.description, show_desc)}"

        child_prefix = prefix + (SPACE if is_last else PIPE)
        children = node.sorted_children()
        for i, child in reversed(list(enumerate(children))):
            stack.append((child, child_prefix, i == len(children) - 1))


def render_tree(root: DependencyNode, show_desc: bool = False) -> str:
    return "\n".join(tree_lines(root, show_desc))


def export_lines(modules: List[str], descriptions: Optional[Dict[str, str]] = None) -> Iterator[str]:
    descriptions = descriptions or {}
    for name in modules:
        yield _label(name, descriptions.get(name, ""), True)
