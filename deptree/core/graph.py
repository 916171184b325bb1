"""
Edge list parsing and tree construction for module graphs.

The graph command emits one ``from to`` pair per line. Those pairs are
folded into an adjacency mapping and then materialized as a tree of
``DependencyNode`` objects, expanding every identifier at most once.
"""
import logging
from typing import Dict, Iterable, List, Optional, Union

from deptree.core.errors import ReadError
from deptree.core.model import DependencyNode

WORKSPACE_MODULE = "temp"
TOOLCHAIN_PREFIXES = ("go@", "toolchain@")

Edges = Dict[str, List[str]]


def parse_edges(source: Union[str, Iterable[str]]) -> Edges:
    """
    Builds the adjacency mapping from raw graph output.

    ``source`` is either the whole output as a string or any iterable of
    lines (an open text stream, for instance). Lines that do not hold
    exactly two tokens are skipped.
    """
    lines = source.splitlines() if isinstance(source, str) else source

    deps: Edges = {}
    try:
        for line in lines:
            parts = line.split()
            if len(parts) != 2: continue

            parent, child = parts
            deps.setdefault(parent, []).append(child)
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"error reading output: {e}") from e

    logging.debug(f"Parsed {sum(len(v) for v in deps.values())} edges from {len(deps)} modules.")
    return deps


def is_toolchain_dep(name: str) -> bool:
    return name.startswith(TOOLCHAIN_PREFIXES)


def select_root(deps: Edges) -> Optional[str]:
    """
    Picks the module the tree starts from.

    The first unversioned key wins (the main module, or the workspace
    placeholder). Keys are visited in the order the graph command first
    emitted them, so the choice is stable for a given input.
    """
    for name in deps:
        if "@" not in name:
            return name

    return next(iter(deps), None)


def build_tree(node: DependencyNode, deps: Edges, visited: set) -> None:
    """
    Expands ``node`` depth-first from ``deps``.

    ``visited`` is shared by the whole traversal: an identifier reached a
    second time becomes a leaf, which also stops cycles.
    """
    if node.name in visited:
        return
    visited.add(node.name)

    stack = [(node, iter(deps.get(node.name, ())))]
    while stack:
        parent, pending = stack[-1]
        for child_name in pending:
            if child_name in parent.children: continue

            child = DependencyNode(child_name)
            parent.children[child_name] = child

            if child_name not in visited:
                visited.add(child_name)
                stack.append((child, iter(deps.get(child_name, ()))))
                break
        else:
            stack.pop()


def find_requested(root: DependencyNode, requested: str) -> Optional[DependencyNode]:
    """Returns the first direct child of ``root`` matching ``requested``."""
    package_base = requested.split("@", 1)[0]

    # The request may name a subpackage of the module (or the other way round)
    for child_name, child in root.children.items():
        child_base = child_name.split("@", 1)[0]
        if package_base.startswith(child_base) or child_base.startswith(package_base):
            return child

    return None


def build_dependency_tree(deps: Edges, requested_package: str = "") -> DependencyNode:
    root_name = select_root(deps)
    if root_name is None:
        raise ValueError("cannot build a tree from an empty edge mapping")

    logging.debug(f"Root module: {root_name}")

    root = DependencyNode(root_name, expanded=True)
    build_tree(root, deps, set())

    if root_name == WORKSPACE_MODULE and requested_package:
        match = find_requested(root, requested_package)
        if match is not None:
            logging.debug(f"Re-rooting tree at {match.name}")
            match.expanded = True
            return match
        logging.warning(f"{requested_package} not found among workspace dependencies")

    return root


def export_modules(deps: Edges) -> List[str]:
    """Every distinct identifier in ``deps``, sorted, minus toolchain entries."""
    unique = set()

    for parent, children in deps.items():
        if parent != WORKSPACE_MODULE and not is_toolchain_dep(parent):
            unique.add(parent)
        for child in children:
            if not is_toolchain_dep(child):
                unique.add(child)

    return sorted(unique)


def collect_modules(root: DependencyNode) -> Dict[str, DependencyNode]:
    """Maps each identifier in the tree to one of its nodes."""
    modules = {}
    stack = [root]
    while stack:
        node = stack.pop()
        modules[node.name] = node
        stack.extend(node.children.values())
    return modules
