import os
import subprocess
import logging
from typing import List

from deptree.core.errors import GraphError, SetupError
from deptree.core.graph import WORKSPACE_MODULE, Edges, parse_edges
from deptree.managers.base import PackageManager

MAIN_TEMPLATE = 'package main\n\nimport _ "{package}"\n\nfunc main() {{}}\n'


class GoManager(PackageManager):
    @property
    def name(self) -> str:
        return "Go Modules"

    @property
    def lock_files(self) -> List[str]:
        return ["go.mod"]

    def get_dependencies(self, work_dir: str) -> Edges:
        logging.debug(f"Reading Go module graph in {work_dir} ...")

        try:
            graph_out = subprocess.check_output(
                ["go", "mod", "graph"],
                cwd=work_dir,
                timeout=120,
                stderr=subprocess.PIPE
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise GraphError(f"failed to run 'go mod graph': {stderr or e}") from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise GraphError(f"failed to run 'go mod graph': {e}") from e

        logging.debug(f"Graph obtained. Processing. {len(graph_out)} bytes...")
        # Identifiers are opaque; undecodable bytes must not abort the run
        return parse_edges(graph_out.decode("utf-8", errors="replace"))

    def setup_package(self, work_dir: str, package: str) -> None:
        logging.debug(f"Preparing workspace for {package} in {work_dir}")

        try:
            subprocess.run(
                ["go", "mod", "init", WORKSPACE_MODULE],
                cwd=work_dir,
                check=True,
                capture_output=True,
                timeout=30
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise SetupError(f"failed to run 'go mod init': {e}") from e

        try:
            result = subprocess.run(
                ["go", "get", package],
                cwd=work_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=300
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise SetupError(f"failed to run 'go get {package}': {e}") from e

        if result.returncode != 0:
            raise SetupError(
                f"failed to run 'go get {package}': exit status {result.returncode}\n"
                f"Output: {result.stdout}"
            )

        try:
            with open(os.path.join(work_dir, "main.go"), "w", encoding="utf-8") as f:
                f.write(MAIN_TEMPLATE.format(package=package))
        except OSError as e:
            raise SetupError(f"failed to write main.go: {e}") from e
