"""Main CLI entry point for the site-drive command.

This module provides the Typer application which browses and edits a
repository snapshot through the caching connector, the way a file manager
works with a local drive: list, inspect, create, rename, move, copy and
remove sites, lists, folders, items and files by path.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.markup import escape
from rich.tree import Tree

from src.cli.errors import LocalFileError, RecurseRequiredError
from src.cli.models import DriveSession, ExitCode
from src.cli.output import OutputHandler, describe_size
from src.drive.config import ConfigLoader, DriveConfig
from src.drive.connector import CachingConnector
from src.drive.errors import (
    ConfigError,
    InvalidArgumentError,
    InvalidHierarchyError,
    UnsupportedOperationError,
)
from src.drive.models import Container, ContentBearing, Entity
from src.drive.parameters import ListCreationParameters, SiteCreationParameters
from src.drive.path_utils import split_parent
from src.remote_client.errors import DriveError, ObjectExistsError, ObjectNotFoundError

app = typer.Typer(
    name="site-drive",
    help="""Browse and edit a site repository snapshot like a drive.

QUICK START:
  site-drive --snapshot repo.yaml ls                      # List the root site
  site-drive --snapshot repo.yaml tree Projects           # Show a subtree
  site-drive --snapshot repo.yaml mkdir "Documents/Specs" # Create a folder
  site-drive --snapshot repo.yaml put ./a.txt Documents   # Upload a file""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

LIST_TEMPLATE = 100
LIBRARY_TEMPLATE = 101


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"site-drive_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@contextmanager
def _command(ctx: typer.Context) -> Iterator[DriveSession]:
    """Run a command body, translating drive errors to messages and exit codes."""
    session: DriveSession = ctx.obj
    output = session.output
    try:
        yield session
    except ObjectNotFoundError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.NOT_FOUND)
    except (InvalidArgumentError, InvalidHierarchyError, UnsupportedOperationError,
            ObjectExistsError, RecurseRequiredError) as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.INVALID_USAGE)
    except DriveError as e:
        logger.error(f"Command failed: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _resolve(connector: CachingConnector, path: Optional[str]) -> Entity:
    return connector.root if path is None else connector.resolve(path)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="YAML configuration file",
        metavar="FILE",
    ),
    snapshot: Optional[str] = typer.Option(
        None,
        "--snapshot",
        "-s",
        help="Repository snapshot to work on (default: site-drive.yaml)",
        metavar="FILE",
    ),
    root: Optional[str] = typer.Option(
        None,
        "--root",
        help="Path of the site, container group or list the drive starts at",
    ),
    keep_alive: Optional[float] = typer.Option(
        None,
        "--keep-alive",
        help="Keep-alive period of the batch cache in seconds",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v info, -vv debug)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Browse and edit a site repository snapshot like a drive."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = ConfigLoader.load(config_path) if config_path else DriveConfig()
        config = ConfigLoader.from_env(config)
        config = config.merged(root=root, keep_alive=keep_alive, snapshot_path=snapshot)
    except ConfigError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    ctx.obj = DriveSession(config=config, output=output)


# Browsing

@app.command("ls")
def list_command(
    ctx: typer.Context,
    path: Optional[str] = typer.Argument(None, help="Path of a container (default: the drive root)"),
) -> None:
    """List the children of a container."""
    with _command(ctx) as session:
        connector = session.connector
        entity = _resolve(connector, path)
        if isinstance(entity, Container):
            session.output.print_entities(connector.get_children(entity), title=entity.path or "/")
        else:
            session.output.print_entities([entity])


@app.command("show")
def show_command(
    ctx: typer.Context,
    path: Optional[str] = typer.Argument(None, help="Path of the object (default: the drive root)"),
) -> None:
    """Show the attributes and properties of an object."""
    with _command(ctx) as session:
        session.output.print_properties(_resolve(session.connector, path))


@app.command("exists")
def exists_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to test; a '*' segment tests for children"),
) -> None:
    """Test whether an object exists (exit code 0 if it does, 2 if not)."""
    with _command(ctx) as session:
        found = session.connector.exists(path)
    session.output.print("True" if found else "False")
    if not found:
        raise typer.Exit(ExitCode.NOT_FOUND)


@app.command("tree")
def tree_command(
    ctx: typer.Context,
    path: Optional[str] = typer.Argument(None, help="Path of the top container (default: the drive root)"),
    depth: int = typer.Option(3, "--depth", "-d", min=1, help="Levels to descend"),
) -> None:
    """Show a container and its descendants as a tree."""
    with _command(ctx) as session:
        connector = session.connector
        entity = _resolve(connector, path)
        tree = Tree(f"[bold]{escape(entity.path or '/')}[/bold] ({entity.KIND})")
        _add_branch(connector, tree, entity, depth)
        session.output.print_tree(tree)


def _add_branch(connector: CachingConnector, node: Tree, entity: Entity, depth: int) -> None:
    if depth <= 0 or not isinstance(entity, Container):
        return
    for child in connector.get_children(entity):
        size = describe_size(child)
        label = f"{escape(child.name)} [dim]({child.KIND}{', ' + size if size else ''})[/dim]"
        _add_branch(connector, node.add(label), child, depth - 1)


@app.command("cat")
def cat_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of a file"),
    version: Optional[str] = typer.Option(None, "--version", help="Version number to read"),
) -> None:
    """Write the content of a file to standard output."""
    with _command(ctx) as session:
        connector = session.connector
        stream = connector.open_file(connector.resolve(path), version)
        typer.echo(stream.read(), nl=False)


# Creating

@app.command("mkdir")
def mkdir_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the new folder"),
) -> None:
    """Create a folder in a list or a folder."""
    with _command(ctx) as session:
        connector = session.connector
        parent_path, name = split_parent(path.strip("/"))
        folder = connector.add_folder(connector.resolve(parent_path), name)
        session.output.success(f"Created folder {folder.path}")


@app.command("new-item")
def new_item_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the new item"),
) -> None:
    """Create a list item without content."""
    with _command(ctx) as session:
        connector = session.connector
        parent_path, name = split_parent(path.strip("/"))
        item = connector.add_item(connector.resolve(parent_path), name)
        session.output.success(f"Created item {item.path}")


@app.command("new-list")
def new_list_command(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Path of the site or container group"),
    name: str = typer.Argument(..., help="List name; 'Group/Name' places it in a group"),
    library: bool = typer.Option(False, "--library", help="Create a document library"),
    template: Optional[int] = typer.Option(
        None, "--template", help="List template (default: 100, or 101 for libraries)"
    ),
    description: str = typer.Option("", "--description", help="List description"),
) -> None:
    """Create a list or a document library."""
    with _command(ctx) as session:
        connector = session.connector
        parameters = ListCreationParameters(
            name=name,
            description=description,
            template=template or (LIBRARY_TEMPLATE if library else LIST_TEMPLATE),
            library=library,
        )
        site_list = connector.add_list(connector.resolve(container), parameters)
        session.output.success(f"Created {site_list.KIND} {site_list.path}")


@app.command("new-site")
def new_site_command(
    ctx: typer.Context,
    site: str = typer.Argument(..., help="Path of the parent site"),
    name: str = typer.Argument(..., help="Name of the new site"),
    template: str = typer.Option(..., "--template", help="Site template, e.g. STS#0"),
    title: str = typer.Option("", "--title", help="Display title (default: the name)"),
    description: str = typer.Option("", "--description", help="Site description"),
) -> None:
    """Create a sub-site."""
    with _command(ctx) as session:
        connector = session.connector
        parameters = SiteCreationParameters(
            name=name, title=title, description=description, template=template
        )
        new_site = connector.add_site(connector.resolve(site), parameters)
        session.output.success(f"Created site {new_site.path}")


@app.command("put")
def put_command(
    ctx: typer.Context,
    local: str = typer.Argument(..., help="Local file to upload"),
    target: str = typer.Argument(..., help="Library or folder to upload to, or a file to replace"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the new file"),
) -> None:
    """Upload a local file, or store it as a new version of an existing file."""
    with _command(ctx) as session:
        try:
            content = Path(local).read_bytes()
        except OSError as e:
            raise LocalFileError(local, e.strerror or str(e))

        connector = session.connector
        entity = connector.resolve(target)
        if isinstance(entity, ContentBearing):
            saved = connector.save_file(entity, content)
            session.output.success(f"Saved {saved.path} ({len(content)} bytes)")
        else:
            created = connector.add_file(entity, name or Path(local).name, content)
            session.output.success(f"Uploaded {created.path} ({len(content)} bytes)")


# Changing

@app.command("rm")
def remove_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the object to remove"),
    recurse: bool = typer.Option(False, "--recurse", "-r", help="Remove containers with content"),
) -> None:
    """Remove a site, a list, a folder, an item or a file."""
    with _command(ctx) as session:
        connector = session.connector
        entity = connector.resolve(path)
        if not recurse and isinstance(entity, Container) and connector.has_children(entity):
            raise RecurseRequiredError(entity.path)
        connector.remove(entity, recurse)
        session.output.success(f"Removed {entity.KIND} {entity.path}")


@app.command("rename")
def rename_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the object to rename"),
    new_name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename an item, a folder or a file."""
    with _command(ctx) as session:
        connector = session.connector
        renamed = connector.rename(connector.resolve(path), new_name)
        session.output.success(f"Renamed to {renamed.path}")


@app.command("mv")
def move_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the object to move"),
    target: str = typer.Argument(..., help="Path of the target list or folder"),
) -> None:
    """Move an item, a folder or a file to another container."""
    with _command(ctx) as session:
        connector = session.connector
        moved = connector.move(connector.resolve(path), connector.resolve(target))
        session.output.success(f"Moved to {moved.path}")


@app.command("cp")
def copy_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the object to copy"),
    target: str = typer.Argument(..., help="Path of the target list or folder"),
    recurse: bool = typer.Option(False, "--recurse", "-r", help="Copy folder content too"),
    name: Optional[str] = typer.Option(None, "--name", help="Name of the copy"),
) -> None:
    """Copy an item, a folder or a file to a container."""
    with _command(ctx) as session:
        connector = session.connector
        copied = connector.copy(connector.resolve(path), connector.resolve(target), recurse, name)
        session.output.success(f"Copied to {copied.path}")


@app.command("clear-cache")
def clear_cache_command(
    ctx: typer.Context,
    include_root: bool = typer.Option(
        False, "--include-root", help="Forget the resolved drive root as well"
    ),
) -> None:
    """Drop the cached objects so the next command reads fresh data."""
    with _command(ctx) as session:
        connector = session.connector
        connector.clear_cache(include_root)
        root = connector.root
        message = "Cache cleared"
        if include_root:
            message += f"; drive root re-resolved to {root.KIND} {root.path or '/'}"
        session.output.success(message)


if __name__ == "__main__":
    app()
