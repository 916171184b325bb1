import logging
from typing import Optional

from rich.markup import escape
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Label, LoadingIndicator, Markdown, Tree

from deptree.__version__ import __version__
from deptree.config import Settings
from deptree.core.graph import collect_modules
from deptree.core.model import DependencyNode
from deptree.core.scanner import describe_modules, enrich_tree, extract_github_repo


def node_label(node: DependencyNode) -> str:
    safe_name = escape(node.module)
    safe_ver = escape(node.version)

    child_count = len(node.children)
    count_suffix = f" [dim]↳[/] {child_count}" if child_count else ""

    label = f"[green]{safe_name}[/]"
    if safe_ver:
        label += f" [dim]{safe_ver}[/]"
    if node.description:
        label += f" [italic]{escape(node.description)}[/]"
    return label + count_suffix


def module_report(node: DependencyNode) -> str:
    lines = [f"# {node.module}\n"]
    lines.append(f"**Version:** {node.version or '_none (main module)_'}\n")
    lines.append(node.description or "_No description fetched._")

    repo = extract_github_repo(node.name)
    if repo:
        url = f"https://github.com/{repo[0]}/{repo[1]}"
        lines.append(f"\n- **Repository**: [{url}]({url})")

    if node.children:
        lines.append(f"\n{len(node.children)} direct dependencies.")

    return "\n".join(lines)


class ModuleScreen(ModalScreen):
    """Modal with the details of one module."""

    DEFAULT_CSS = """
    ModuleScreen {
        align: center middle;
        background: rgba(0, 0, 0, 0.8);
    }
    #dialog {
        padding: 0 1;
        width: 70%;
        height: 60%;
        border: heavy $primary;
        background: $surface;
        layout: vertical;
    }
    #title {
        text-align: center;
        text-style: bold;
        background: $primary;
        width: 100%;
        padding: 1;
    }
    #close-btn {
        width: 100%;
        dock: bottom;
    }
    """

    def __init__(self, node: DependencyNode) -> None:
        super().__init__()
        self.module_node = node

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(escape(self.module_node.name), id="title"),
            Markdown(module_report(self.module_node)),
            Button("Close (Esc)", variant="primary", id="close-btn"),
            id="dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss()

    def key_escape(self) -> None:
        self.dismiss()


class DeptreeApp(App):
    TITLE = "deptree"
    SUB_TITLE = f"v{__version__}"

    DEFAULT_CSS = """
    Screen { layout: vertical; }

    #info-bar {
        height: 3;
        dock: top;
        background: $surface;
        border-bottom: solid $primary;
        align: left middle;
        padding: 0 1;
    }

    .info-label {
        width: auto;
        height: 1;
        padding: 0 2;
        color: $text;
    }

    #tree-container {
        height: 1fr;
        border: none;
        margin: 0 1;
    }
    Tree { padding: 1; background: $surface; }

    #loading-container { height: 100%; align: center middle; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("l", "expand_node", "Expand"),
        Binding("h", "collapse_node", "Collapse"),
        Binding("space", "toggle_node", "Toggle"),
        Binding("enter", "select_cursor", "Details"),
    ]

    def __init__(self, root: DependencyNode, fetch_desc: bool = False,
                 settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.root_node = root
        self.fetch_desc = fetch_desc
        self.scan_settings = settings or Settings()
        self.module_index = collect_modules(root)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="info-bar"):
            yield Label(f"[b]Root:[/b] [cyan]{escape(self.root_node.name)}[/]", classes="info-label")
            yield Label(f"[b]Modules:[/b] [blue]{len(self.module_index)}[/]", classes="info-label")

        with Container(id="main-area"):
            with Container(id="loading-container"):
                yield LoadingIndicator()
                yield Label("Fetching descriptions...", id="status-label")

            with Container(id="tree-container"):
                yield Tree("Root", id="dep-tree")

        yield Footer()

    def on_mount(self) -> None:
        if self.fetch_desc:
            self.query_one("#tree-container").display = False
            self.load_descriptions()
        else:
            self.render_tree()

    # --- ACTIONS ---

    def action_cursor_down(self) -> None:
        self.query_one("#dep-tree").action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#dep-tree").action_cursor_up()

    def action_expand_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.expand()

    def action_collapse_node(self) -> None:
        tree = self.query_one("#dep-tree")
        node = tree.cursor_node
        if node:
            if node.is_expanded:
                node.collapse()
            elif node.parent:
                tree.select_node(node.parent)
                node.parent.collapse()

    def action_toggle_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.toggle()

    def action_select_cursor(self) -> None:
        self.query_one("#dep-tree").action_select_cursor()

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        if event.node.data is not None:
            self.push_screen(ModuleScreen(event.node.data))

    # --- LOGIC ---

    @work(thread=False)
    async def load_descriptions(self) -> None:
        logging.info("Description worker started.")
        descriptions = await describe_modules(
            self.module_index,
            token=self.scan_settings.token,
            timeout=self.scan_settings.timeout,
            api_url=self.scan_settings.api_url,
            user_agent=self.scan_settings.user_agent,
            max_concurrency=self.scan_settings.max_concurrency,
        )
        enrich_tree(self.root_node, descriptions)
        self.render_tree()

    def render_tree(self) -> None:
        tree = self.query_one("#dep-tree")
        tree.clear()
        tree.root.data = self.root_node
        tree.root.label = node_label(self.root_node)
        tree.root.expand()

        def add_nodes(tree_node, data_node):
            for child in data_node.sorted_children():
                new_node = tree_node.add(node_label(child), expand=child.expanded, data=child)
                add_nodes(new_node, child)

        add_nodes(tree.root, self.root_node)
        self.query_one("#loading-container").display = False
        self.query_one("#tree-container").display = True
        tree.focus()
