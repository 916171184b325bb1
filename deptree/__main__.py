import asyncio
import logging
import sys
import tempfile

import click

from deptree.__version__ import __version__
from deptree.config import load_settings
from deptree.core.errors import DeptreeError, GraphError, NoProjectError, ReadError, SetupError
from deptree.core.graph import build_dependency_tree, collect_modules, export_modules
from deptree.core.presenter import export_lines, tree_lines
from deptree.core.scanner import describe_modules, enrich_tree
from deptree.managers import default_manager, detect_manager


def configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            filename="debug.log",
            level=logging.DEBUG,
            filemode="w",
            format="%(asctime)s - %(levelname)s - %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


def read_graph(manager, work_dir: str):
    try:
        return manager.get_dependencies(work_dir)
    except (GraphError, ReadError) as e:
        raise type(e)(f"failed to get dependencies: {e}") from e


def load_graph(path: str, package: str):
    if not package:
        manager = detect_manager(path)
        if not manager:
            raise NoProjectError(f"No supported project found in {path}")
        logging.info(f"Manager: {manager.name}")
        return read_graph(manager, path)

    manager = default_manager()
    try:
        workspace = tempfile.TemporaryDirectory(prefix="deptree-")
    except OSError as e:
        raise SetupError(f"failed to create temp directory: {e}") from e

    with workspace as work_dir:
        try:
            manager.setup_package(work_dir, package)
        except SetupError as e:
            raise SetupError(f"failed to setup package: {e}") from e
        return read_graph(manager, work_dir)


def describe(names, settings):
    return asyncio.run(describe_modules(
        names,
        token=settings.token,
        timeout=settings.timeout,
        api_url=settings.api_url,
        user_agent=settings.user_agent,
        max_concurrency=settings.max_concurrency,
    ))


def run(path, package, export, desc, tui, settings) -> None:
    deps = load_graph(path, package)

    if not deps:
        click.echo("No dependencies found")
        return

    if export:
        modules = export_modules(deps)
        descriptions = describe(modules, settings) if desc else {}
        for line in export_lines(modules, descriptions):
            click.echo(line)
        return

    tree = build_dependency_tree(deps, package)

    if tui:
        from deptree.app import DeptreeApp
        DeptreeApp(tree, fetch_desc=desc, settings=settings).run()
        return

    if desc:
        enrich_tree(tree, describe(collect_modules(tree), settings))

    for line in tree_lines(tree, show_desc=desc):
        click.echo(line)


@click.command()
@click.option("--path", "package_path", default=".", show_default=True,
              help="Path to the Go module to analyze.")
@click.option("--package", "package_name", default="",
              help="Package to fetch and analyze (e.g. github.com/spf13/cobra).")
@click.option("--export", "export_mode", is_flag=True,
              help="Print a flat list sorted by name with no duplicates.")
@click.option("--desc", "fetch_desc", is_flag=True,
              help="Fetch and display GitHub repository descriptions.")
@click.option("--token", default=None,
              help="GitHub personal access token (or use the GITHUB_TOKEN env var).")
@click.option("--max-concurrency", type=click.IntRange(min=0), default=None,
              help="Cap on concurrent GitHub requests (0 or unset: no cap).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Per-request timeout in seconds.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Config file (default: ~/.config/deptree/config.toml).")
@click.option("--tui", is_flag=True, help="Browse the tree interactively.")
@click.option("--debug", is_flag=True, help="Write a debug log to debug.log.")
@click.version_option(__version__, prog_name="deptree")
def main(package_path, package_name, export_mode, fetch_desc, token,
         max_concurrency, timeout, config_path, tui, debug):
    """Show the dependency tree of a Go module."""
    configure_logging(debug)

    try:
        settings = load_settings(
            config_path,
            token=token,
            timeout=timeout,
            max_concurrency=max_concurrency,
        )
        run(package_path, package_name, export_mode, fetch_desc, tui, settings)
    except DeptreeError as e:
        logging.debug("Fatal error:", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


# Development mode
if __name__ == "__main__":
    main()
