"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, entity tables, property listings and trees. Supports
verbosity levels and the --no-color flag.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from src.drive.models import Entity, File, Folder, SiteList


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Folder created")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(escape(message))

    def print_entities(self, entities: Iterable[Entity], title: Optional[str] = None) -> None:
        """Display entities as a table of name, kind, modification time and size.

        Args:
            entities: Entities to list
            title: Optional table title, usually the container path
        """
        table = Table(title=escape(title) if title else None, show_edge=False)
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Modified")
        table.add_column("Size", justify="right")

        rows = 0
        for entity in entities:
            table.add_row(
                escape(entity.name or "/"),
                entity.KIND,
                _format_time(getattr(entity, "modified", None)),
                describe_size(entity),
            )
            rows += 1

        if rows == 0:
            self.console.print("[dim](empty)[/dim]")
        else:
            self.console.print(table)

    def print_properties(self, entity: Entity) -> None:
        """Display the attributes and the raw property bag of an entity."""
        table = Table(show_header=False, show_edge=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        for name, value in describe_entity(entity):
            table.add_row(name, escape(value))

        extra = sorted(
            (key, value) for key, value in entity.properties.items()
            if key not in ("name", "title")
        )
        for key, value in extra:
            table.add_row(f"[dim]{escape(str(key))}[/dim]", escape(str(value)))

        self.console.print(table)

    def print_tree(self, tree: Tree) -> None:
        self.console.print(tree)


def describe_entity(entity: Entity) -> List[Tuple[str, str]]:
    """Return the displayed (label, value) pairs of an entity."""
    rows = [
        ("Path", entity.path or "/"),
        ("Kind", entity.KIND),
        ("Title", entity.title),
    ]
    for label, attribute in (("Id", "id"), ("Unique id", "unique_id")):
        value = getattr(entity, attribute, None)
        if value not in (None, ""):
            rows.append((label, str(value)))
    for label, attribute in (("Created", "created"), ("Modified", "modified"),
                             ("Deleted", "deleted")):
        value = getattr(entity, attribute, None)
        if value is not None:
            rows.append((label, _format_time(value)))
    size = describe_size(entity)
    if size:
        rows.append(("Size", size))
    return rows


def describe_size(entity: Entity) -> str:
    if isinstance(entity, File):
        return f"{entity.size} B"
    if isinstance(entity, SiteList):
        return f"{entity.item_count} items"
    if isinstance(entity, Folder):
        return f"{entity.child_count} children"
    return ""


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")
