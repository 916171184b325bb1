import io
import unittest

from deptree.core.errors import ReadError
from deptree.core.graph import (
    build_dependency_tree,
    build_tree,
    collect_modules,
    export_modules,
    is_toolchain_dep,
    parse_edges,
    select_root,
)
from deptree.core.model import DependencyNode


class FailingStream:
    def __iter__(self):
        yield "root dep@v1.0.0\n"
        raise OSError("broken pipe")


class TestParseEdges(unittest.TestCase):

    def test_keeps_order_and_duplicates(self):
        deps = parse_edges("a b@v1\na c@v1\na b@v1\nb@v1 c@v1\n")

        self.assertEqual(deps["a"], ["b@v1", "c@v1", "b@v1"])
        self.assertEqual(deps["b@v1"], ["c@v1"])

    def test_skips_malformed_lines(self):
        deps = parse_edges("\nlonely\na b c\n  a   b@v1  \n")

        self.assertEqual(deps, {"a": ["b@v1"]})

    def test_reads_text_stream(self):
        deps = parse_edges(io.StringIO("root dep@v1.0.0\ndep@v1.0.0 go@1.21.0\n"))

        self.assertEqual(deps, {"root": ["dep@v1.0.0"], "dep@v1.0.0": ["go@1.21.0"]})

    def test_stream_failure(self):
        with self.assertRaises(ReadError):
            parse_edges(FailingStream())


class TestBuildTree(unittest.TestCase):

    def test_build_tree(self):
        deps = {
            "root": ["dep1@v1.0.0", "dep2@v1.0.0"],
            "dep1@v1.0.0": ["dep3@v1.0.0"],
            "dep2@v1.0.0": [],
            "dep3@v1.0.0": [],
        }

        root = DependencyNode("root")
        visited = set()
        build_tree(root, deps, visited)

        self.assertEqual(list(root.children), ["dep1@v1.0.0", "dep2@v1.0.0"])
        self.assertEqual(list(root.children["dep1@v1.0.0"].children), ["dep3@v1.0.0"])
        self.assertIn("root", visited)

    def test_circular_dependency_handling(self):
        """ Cycles must not loop forever """
        deps = {
            "root": ["pkg-A@v1"],
            "pkg-A@v1": ["pkg-B@v1"],
            "pkg-B@v1": ["pkg-A@v1"],
        }

        root = build_dependency_tree(deps)

        node_a = root.children["pkg-A@v1"]
        node_b = node_a.children["pkg-B@v1"]
        node_cycle = node_b.children["pkg-A@v1"]

        self.assertIsNot(node_cycle, node_a)
        self.assertEqual(len(node_cycle.children), 0)

    def test_self_loop(self):
        root = build_dependency_tree({"root": ["root"]})

        self.assertEqual(len(root.children["root"].children), 0)

    def test_first_expansion_wins(self):
        deps = {
            "root": ["a@v1", "b@v1"],
            "a@v1": ["shared@v1"],
            "b@v1": ["shared@v1"],
            "shared@v1": ["leaf@v1"],
        }

        root = build_dependency_tree(deps)

        under_a = root.children["a@v1"].children["shared@v1"]
        under_b = root.children["b@v1"].children["shared@v1"]

        self.assertIn("leaf@v1", under_a.children)
        self.assertEqual(under_b.children, {})
        self.assertIsNot(under_a, under_b)

    def test_duplicate_edges_make_one_child(self):
        root = build_dependency_tree({"root": ["a@v1", "a@v1"]})

        self.assertEqual(list(root.children), ["a@v1"])

    def test_deep_chain(self):
        deps = {f"m{i}@v1": [f"m{i + 1}@v1"] for i in range(5000)}
        deps = {"root": ["m0@v1"], **deps}

        root = build_dependency_tree(deps)

        self.assertEqual(len(collect_modules(root)), 5002)


class TestRootSelection(unittest.TestCase):

    def test_prefers_unversioned_key(self):
        deps = {
            "dep1@v1.0.0": ["dep3@v1.0.0"],
            "mymodule": ["dep1@v1.0.0", "dep2@v1.0.0"],
        }

        self.assertEqual(select_root(deps), "mymodule")

        tree = build_dependency_tree(deps)
        self.assertEqual(tree.name, "mymodule")
        self.assertEqual(len(tree.children), 2)

    def test_falls_back_to_first_key(self):
        deps = {"b@v1": ["c@v1"], "a@v1": ["b@v1"]}

        self.assertEqual(select_root(deps), "b@v1")

    def test_empty_mapping(self):
        self.assertIsNone(select_root({}))
        with self.assertRaises(ValueError):
            build_dependency_tree({})

    def test_reroots_at_requested_package(self):
        deps = {
            "temp": ["host/owner/repo@v1.0.0"],
            "host/owner/repo@v1.0.0": ["dep@v1.0.0"],
        }

        tree = build_dependency_tree(deps, "host/owner/repo")

        self.assertEqual(tree.name, "host/owner/repo@v1.0.0")
        self.assertIn("dep@v1.0.0", tree.children)

    def test_reroots_with_subpackage_request(self):
        deps = {
            "temp": ["go@1.22.0", "github.com/a-h/templ@v0.3.960"],
            "github.com/a-h/templ@v0.3.960": ["golang.org/x/mod@v0.20.0"],
        }

        tree = build_dependency_tree(deps, "github.com/a-h/templ/cmd/templ@latest")

        self.assertEqual(tree.name, "github.com/a-h/templ@v0.3.960")

    def test_keeps_workspace_root_without_match(self):
        deps = {"temp": ["github.com/other/thing@v1.0.0"]}

        tree = build_dependency_tree(deps, "github.com/example/pkg")

        self.assertEqual(tree.name, "temp")

    def test_no_reroot_without_request(self):
        deps = {"temp": ["github.com/example/pkg@v1.0.0"]}

        self.assertEqual(build_dependency_tree(deps).name, "temp")


class TestExport(unittest.TestCase):

    def test_is_toolchain_dep(self):
        self.assertTrue(is_toolchain_dep("go@1.21.0"))
        self.assertTrue(is_toolchain_dep("toolchain@go1.21.0"))
        self.assertFalse(is_toolchain_dep("github.com/spf13/cobra@v1.7.0"))
        self.assertFalse(is_toolchain_dep("golang.org/x/sys@v0.1.0"))
        self.assertFalse(is_toolchain_dep(""))

    def test_export_modules(self):
        deps = {
            "mymodule": ["dep1@v1.0.0", "dep2@v2.0.0", "dep1@v1.0.0"],
            "dep1@v1.0.0": ["dep3@v1.5.0", "toolchain@go1.21.0"],
            "dep2@v2.0.0": ["dep1@v1.0.0"],
            "temp": ["go@1.21.0"],
            "go@1.21.0": ["toolchain@go1.21.0"],
        }

        self.assertEqual(
            export_modules(deps),
            ["dep1@v1.0.0", "dep2@v2.0.0", "dep3@v1.5.0", "mymodule"],
        )


class TestCollectModules(unittest.TestCase):

    def test_one_entry_per_identifier(self):
        deps = {
            "root": ["a@v1", "b@v1"],
            "a@v1": ["shared@v1"],
            "b@v1": ["shared@v1"],
        }

        modules = collect_modules(build_dependency_tree(deps))

        self.assertEqual(sorted(modules), ["a@v1", "b@v1", "root", "shared@v1"])
