"""
Reporting and output formatting for declared buckets.

Provides console tables using the Rich library and a JSON-ready summary.
"""

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .configuration import Configuration
from .declarations import DeclaredBuild
from .dependency import (
    ClasspathDependency,
    Dependency,
    ExternalModuleDependency,
    ModuleDependency,
    ProjectDependency,
)


def dependency_kind(dependency: Dependency) -> str:
    if isinstance(dependency, ProjectDependency):
        return "project"
    if isinstance(dependency, ExternalModuleDependency):
        return "module"
    if isinstance(dependency, ClasspathDependency):
        return "classpath"
    return type(dependency).__name__


def dependency_to_dict(dependency: Dependency) -> Dict[str, Any]:
    """Convert a dependency to a JSON-serializable dictionary."""
    data: Dict[str, Any] = {
        "kind": dependency_kind(dependency),
        "notation": str(dependency),
    }
    if isinstance(dependency, ExternalModuleDependency):
        data.update(
            group=dependency.group, name=dependency.name, version=dependency.version
        )
    if isinstance(dependency, ProjectDependency):
        data["path"] = dependency.path
    if isinstance(dependency, ModuleDependency):
        data["transitive"] = dependency.transitive
        data["capabilities"] = [str(c) for c in dependency.requested_capabilities]
        data["excludes"] = [
            {"group": rule.group, "module": rule.module} for rule in dependency.excludes
        ]
    if dependency.reason:
        data["because"] = dependency.reason
    return data


def build_to_dict(build: DeclaredBuild) -> Dict[str, Any]:
    """Summarize every bucket of a declared build."""
    return {
        "source_file": build.source_file,
        "project": build.project.path,
        "entries": build.entry_count,
        "buckets": {
            bucket.name: {
                "dependencies": [dependency_to_dict(dep) for dep in bucket.dependencies],
                "pending": bucket.dependencies.pending_count,
            }
            for bucket in build.dependencies.buckets()
        },
    }


class DeclarationReporter:
    """Formats and displays declared buckets."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_build(self, build: DeclaredBuild) -> None:
        self.console.print()
        self.console.print(
            Panel(
                f"📦 Declared dependencies: {build.source_file}",
                title=f"[bold blue]Project {build.project.path}[/bold blue]",
                border_style="blue",
            )
        )

        non_empty = [
            bucket
            for bucket in build.dependencies.buckets()
            if len(bucket.dependencies) or bucket.dependencies.pending_count
        ]
        if not non_empty:
            self.console.print("ℹ️  No dependencies declared.", style="blue")
            return

        for bucket in non_empty:
            self._print_bucket(bucket)

        self._print_summary(build.dependencies.buckets())

    def _print_bucket(self, bucket: Configuration) -> None:
        table = Table(title=f"🪣 {bucket.name}", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Dependency", style="bold")
        table.add_column("Kind", justify="center")
        table.add_column("Capabilities")
        table.add_column("Because", style="dim")

        for index, dependency in enumerate(bucket.dependencies, 1):
            capabilities = (
                ", ".join(str(c) for c in dependency.requested_capabilities)
                if isinstance(dependency, ModuleDependency)
                else ""
            )
            table.add_row(
                str(index),
                str(dependency),
                dependency_kind(dependency),
                capabilities,
                dependency.reason or "",
            )

        self.console.print(table)
        pending = bucket.dependencies.pending_count
        if pending:
            self.console.print(
                f"  ⏳ {pending} deferred entr{'y' if pending == 1 else 'ies'} not yet realized",
                style="yellow",
            )

    def _print_summary(self, buckets: List[Configuration]) -> None:
        realized = sum(len(bucket.dependencies) for bucket in buckets)
        pending = sum(bucket.dependencies.pending_count for bucket in buckets)
        self.console.print(
            f"\n✅ {realized} dependencies realized, {pending} pending", style="green"
        )
