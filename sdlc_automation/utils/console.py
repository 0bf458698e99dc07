"""
Console output for the CLI: status lines, tables and work item trees.
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from sdlc_automation.work_items.models import LoadOptions, WorkItemModel


class ConsoleWriter:
    """Writes user-facing messages; logging goes through the logging module instead."""

    def __init__(self, console: Optional[Console] = None, show_timings: bool = True,
                 total_elapsed_ms: Optional[Callable[[], int]] = None):
        self.console = console or Console()
        self.show_timings = show_timings
        self._total_elapsed_ms = total_elapsed_ms

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/] {escape(message)}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/] {escape(message)}")

    @contextmanager
    def timed(self, operation_name: str):
        """Show a spinner while the block runs, then report its timing."""
        started = time.perf_counter()
        try:
            with self.console.status(f"[blue]{escape(operation_name)}...[/]", spinner="dots"):
                yield
        finally:
            if self.show_timings:
                elapsed = int((time.perf_counter() - started) * 1000)
                total = self._total_elapsed_ms() if self._total_elapsed_ms else elapsed
                self.success(f"{operation_name} completed in {elapsed}ms (total: {total}ms)")

    def print(self, renderable) -> None:
        self.console.print(renderable)


def work_item_table(work_items: Iterable[WorkItemModel], options: LoadOptions) -> Table:
    table = Table()
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("State")
    table.add_column("Assigned To")

    counted = [
        (options.load_children, "Children", lambda wi: wi.children),
        (options.load_parents, "Parents", lambda wi: wi.parents),
        (options.load_commits, "Commits", lambda wi: wi.commits),
        (options.load_pull_requests, "PRs", lambda wi: wi.pull_requests),
    ]
    counted = [(name, getter) for enabled, name, getter in counted if enabled]
    for name, _ in counted:
        table.add_column(name)

    for item in work_items:
        row: List[str] = [
            str(item.id),
            item.title or "(no title)",
            item.state or "(no state)",
            item.assigned_to or "(unassigned)",
        ]
        row.extend(str(len(getter(item) or [])) for _, getter in counted)
        table.add_row(*[escape(cell) for cell in row])
    return table


def _label(item: WorkItemModel) -> str:
    kind = f"[dim]{escape(item.work_item_type)}[/] " if item.work_item_type else ""
    state = f" [cyan]({escape(item.state)})[/]" if item.state else ""
    return f"{kind}[bold]#{item.id}[/] {escape(item.title or '(no title)')}{state}"


def _add_branches(node: Tree, item: WorkItemModel) -> None:
    if item.parents is not None:
        parents = node.add("[magenta]Parents[/]")
        for parent in item.parents:
            _add_branches(parents.add(_label(parent)), parent)
    if item.children is not None:
        children = node.add("[green]Children[/]")
        for child in item.children:
            _add_branches(children.add(_label(child)), child)
    if item.commits is not None:
        commits = node.add("[yellow]Commits[/]")
        for commit in item.commits:
            text = commit.commit_id or "(unknown commit)"
            if commit.comment:
                text += f" - {commit.comment}"
            commits.add(escape(text))
    if item.pull_requests is not None:
        pull_requests = node.add("[blue]Pull Requests[/]")
        for pr in item.pull_requests:
            label = f"!{pr.pull_request_id}" if pr.pull_request_id is not None else "(unknown PR)"
            pull_requests.add(escape(f"{label} {pr.title or ''}".strip()))


def work_item_tree(item: WorkItemModel) -> Tree:
    tree = Tree(_label(item))
    _add_branches(tree, item)
    return tree
