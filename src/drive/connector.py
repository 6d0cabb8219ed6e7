"""Path resolution and caching connector.

This module provides the CachingConnector class which turns slash-separated
paths into entities. The backend can look up sites and items by path, but
lists are known only from a flat enumeration of all lists of a site, and the
container groups between a site and a list exist only as shared prefixes of
list paths. The connector walks a path segment by segment through this
mismatched hierarchy:

1. sub-sites are matched greedily as long as a segment names one,
2. the next segment names a list, or a container group inferred from the
   lists whose site-relative path starts with it,
3. after a container group the next segment names a list in it,
4. whatever remains is handed to the backend as a single item lookup.

Every entity built on the way is kept in a BatchCache, so the many lookups a
single operation triggers hit the backend only once. Mutations call the
backend first and reconcile the cache only after it succeeded.
"""

import io
import logging
import time
from dataclasses import replace
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple, Type, Union

from src.remote_client.backend import Backend, Record
from src.remote_client.errors import ObjectNotFoundError
from src.remote_client.values import parse_timestamp, to_bool, to_int
from .batch_cache import DEFAULT_KEEP_ALIVE, BatchCache
from .config import DriveConfig
from .errors import InvalidArgumentError, InvalidHierarchyError, UnsupportedOperationError
from .models import (
    Container,
    ContainerGroup,
    ContentBearing,
    ContentContainer,
    Entity,
    FieldDefinition,
    File,
    Folder,
    Item,
    ItemContainer,
    Library,
    LibraryFolder,
    Manipulable,
    Removable,
    Site,
    SiteList,
    require_capability,
)
from .parameters import ListCreationParameters, SiteCreationParameters
from .path_utils import (
    get_child_name,
    get_parent_path,
    join_path,
    join_segments,
    normalize_path,
    paths_equal,
    split_path,
    starts_with_path,
    strip_prefix,
    wildcard_index,
)

logger = logging.getLogger(__name__)

Content = Union[bytes, str, BinaryIO]

# Attributes of container entities holding cached child listings
CHILD_SLOTS = ("_child_sites", "_all_lists", "_child_items")


class CachingConnector:
    """Resolves paths to entities and performs operations on them.

    One connector serves one repository connection. It is meant for a single
    caller issuing one operation at a time; it holds no locks.

    Example:
        >>> connector = CachingConnector(MemoryBackend.from_snapshot("repo.yaml"))
        >>> tasks = connector.resolve("Projects/Lists/Tasks")
        >>> [child.name for child in connector.get_children(tasks)]
        ['Plan', 'Review']
    """

    def __init__(
        self,
        backend: Backend,
        root: str = "",
        keep_alive: float = DEFAULT_KEEP_ALIVE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the connector.

        Args:
            backend: Backend performing the raw queries and mutations
            root: Path of the site, container group or list the drive starts at
            keep_alive: Keep-alive period of the batch cache in seconds
            clock: Source of the current time, replaceable in tests
        """
        self.backend = backend
        self.root_path = normalize_path(root)
        self._root: Optional[Entity] = None
        self.cache = BatchCache(keep_alive, clock, on_cold=self._on_cache_cold)

    @classmethod
    def from_config(
        cls,
        backend: Backend,
        config: DriveConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CachingConnector":
        return cls(backend, config.root, config.keep_alive, clock)

    @property
    def root(self) -> Entity:
        """Anchor entity of the drive, resolved on first use and kept until cleared."""
        if self._root is None:
            self._root = self._get_root()
            logger.info(f"Drive root resolved to {self._root.KIND} '{self._root.path or '/'}'")
        return self._root

    # Resolution

    def resolve(self, path: str) -> Entity:
        """Return the entity living at a path.

        Args:
            path: Path relative to the backend root site; slashes and
                backslashes both separate segments, case does not matter

        Returns:
            Site, ContainerGroup, SiteList or Item (Folder, File)

        Raises:
            ObjectNotFoundError: If no entity lives at the path or the path
                lies outside of the drive root
            BackendUnavailableError: If a backend query fails
        """
        path = normalize_path(path)
        root = self.root
        rest = strip_prefix(path, root.path)
        if rest is None:
            raise ObjectNotFoundError(path, f"outside of the drive root '{root.path}'")

        cached = self.cache.get(path)
        if cached is not None:
            return cached
        if not rest:
            return root
        return self._walk(root, split_path(rest), path)

    def exists(self, path: str) -> bool:
        """Check whether an entity lives at a path.

        A bare "*" segment stops the walk: the answer is then
        whether the container resolved so far has any children. This is the
        cheap probe used by name completion.

        Raises:
            BackendUnavailableError: If a backend query fails
        """
        path = normalize_path(path)
        segments = split_path(path)
        wildcard = wildcard_index(segments)
        try:
            if wildcard < 0:
                self.resolve(path)
                return True
            container = self.resolve(join_segments(segments[:wildcard]))
        except ObjectNotFoundError:
            return False
        return isinstance(container, Container) and self.has_children(container)

    # Enumeration

    def get_children(self, container: Entity) -> List[Entity]:
        """Return the children of a container, sites first, then lists and groups."""
        if isinstance(container, Site):
            return (
                self.get_sites(container)
                + self.get_lists(container)
                + self.get_container_groups(container)
            )
        if isinstance(container, ContainerGroup):
            return self.get_lists(container)
        if isinstance(container, ItemContainer):
            return self.get_items(container)
        raise UnsupportedOperationError("get children", container.KIND, container.path)

    def has_children(self, container: Entity) -> bool:
        if isinstance(container, Site):
            return bool(self.get_sites(container)) or bool(self._get_all_lists(container))
        if isinstance(container, ContainerGroup):
            return bool(self.get_lists(container))
        if isinstance(container, ItemContainer):
            return bool(self.get_items(container))
        return False

    def get_sites(self, site: Site) -> List[Site]:
        """Return the sub-sites of a site, querying the backend unless cached."""
        if site._child_sites is None or not self.cache.check():
            records = self.backend.query_sites(site)
            site._child_sites = [
                self._create_site(join_path(site.path, str(record.get("name", ""))), record)
                for record in records
            ]
        return list(site._child_sites)

    def get_lists(self, container: Entity) -> List[SiteList]:
        """Return the lists placed directly on a site or in a container group."""
        if isinstance(container, Site):
            return [
                site_list for site_list in self._get_all_lists(container)
                if not get_parent_path(site_list.site_relative_path)
            ]
        if isinstance(container, ContainerGroup):
            return [
                site_list for site_list in self._get_all_lists(container.site)
                if paths_equal(get_parent_path(site_list.site_relative_path), container.name)
            ]
        raise UnsupportedOperationError("get lists", container.KIND, container.path)

    def get_container_groups(self, site: Site) -> List[ContainerGroup]:
        """Return the container groups inferred from the list paths of a site."""
        names: List[str] = []
        for site_list in self._get_all_lists(site):
            name = get_parent_path(site_list.site_relative_path)
            if name and not any(paths_equal(name, known) for known in names):
                names.append(name)
        return [self._infer_group(site, name) for name in names]

    def get_items(self, container: ItemContainer) -> List[Item]:
        """Return the items placed directly in a list or a folder."""
        require_capability(container, ItemContainer, "get items")
        if container._child_items is None or not self.cache.check():
            records = self.backend.query_items(container)
            container._child_items = [
                self._create_item(
                    container.site_list,
                    join_path(container.path, str(record.get("name", ""))),
                    record,
                )
                for record in records
            ]
        return list(container._child_items)

    # Generic operations dispatched by capability

    def remove(self, entity: Entity, recurse: bool = False) -> None:
        require_capability(entity, Removable, "remove").remove(recurse)

    def rename(self, entity: Entity, new_name: str) -> Entity:
        return require_capability(entity, Manipulable, "rename").rename(new_name)

    def move(self, entity: Entity, target: Entity) -> Entity:
        return require_capability(entity, Manipulable, "move").move(target)

    def copy(
        self,
        entity: Entity,
        target: Entity,
        recurse: bool = False,
        new_name: Optional[str] = None
    ) -> Entity:
        return require_capability(entity, Manipulable, "copy").copy(target, recurse, new_name)

    # Mutations

    def remove_site(self, site: Site) -> None:
        """Remove a sub-site with everything below it.

        Raises:
            UnsupportedOperationError: If the site is the root site
        """
        if not site.path:
            raise UnsupportedOperationError("remove", "the root site", site.path)
        self.backend.remove_site(site)
        logger.info(f"Removed site '{site.path}'")

        holders = self._listing_holders(get_parent_path(site.path))
        if self._begin_reconcile(holders):
            self._update_listings(holders, "_child_sites", removed=site.path)
        self.cache.remove(site)

    def remove_list(self, site_list: SiteList) -> None:
        """Remove a list; its container group vanishes with its last list."""
        self.backend.remove_list(site_list)
        logger.info(f"Removed list '{site_list.path}'")

        site = site_list.site
        holders = self._listing_holders(site.path, site)
        warm = self._begin_reconcile(holders)
        if warm:
            self._update_listings(holders, "_all_lists", removed=site_list.path)
        self.cache.remove(site_list)

        group_name = get_parent_path(site_list.site_relative_path)
        if group_name:
            remaining = [
                getattr(holder, "_all_lists") for holder in holders
                if getattr(holder, "_all_lists", None) is not None
            ]
            group_empty = not remaining or not any(
                paths_equal(get_parent_path(other.site_relative_path), group_name)
                for other in remaining[0]
            )
            group = self.cache.peek(join_path(site.path, group_name))
            if group_empty and group is not None:
                self.cache.remove(group)

    def remove_item(self, item: Item) -> None:
        """Remove an item, a file or a folder with its content."""
        self.backend.remove_item(item)
        logger.info(f"Removed {item.KIND} '{item.path}'")

        holders = self._item_parent_holders(item)
        if self._begin_reconcile(holders):
            self._update_listings(holders, "_child_items", removed=item.path)
        self.cache.remove(item)

    def rename_item(self, item: Item, new_name: str) -> Item:
        """Rename an item in place and return the renamed entity.

        Cached descendants of a renamed folder are evicted, not re-keyed.
        """
        new_name = self._check_name(new_name, "new_name")
        record = self.backend.rename_item(item, new_name)
        logger.info(f"Renamed {item.KIND} '{item.path}' to '{new_name}'")

        holders = self._item_parent_holders(item)
        warm = self._begin_reconcile(holders)
        self.cache.remove(item)
        renamed = self._create_item(
            item.site_list,
            join_path(get_parent_path(item.path), str(record.get("name") or new_name)),
            record,
        )
        if warm:
            self._update_listings(holders, "_child_items", removed=item.path, added=renamed)
        return renamed

    def move_item(self, item: Item, target: Entity) -> Item:
        """Move an item to another list or folder and return the moved entity.

        Raises:
            InvalidHierarchyError: If the target cannot hold the item
        """
        container = self._check_target(item, target, "move")
        record = self.backend.move_item(item, container)
        logger.info(f"Moved {item.KIND} '{item.path}' to '{container.path}'")

        source_holders = self._item_parent_holders(item)
        target_holders = self._listing_holders(container.path, container)
        warm = self._begin_reconcile(source_holders + target_holders)
        self.cache.remove(item)
        moved = self._create_item(
            container.site_list,
            join_path(container.path, str(record.get("name") or item.name)),
            record,
        )
        if warm:
            self._update_listings(source_holders, "_child_items", removed=item.path)
            self._update_listings(target_holders, "_child_items", added=moved)
        return moved

    def copy_item(
        self,
        item: Item,
        target: Entity,
        recurse: bool = False,
        new_name: Optional[str] = None
    ) -> Item:
        """Copy an item to a list or a folder and return the copy.

        Folders are copied with their content only when recurse is set.

        Raises:
            InvalidHierarchyError: If the target cannot hold the item
        """
        container = self._check_target(item, target, "copy")
        if new_name is not None:
            new_name = self._check_name(new_name, "new_name")
        record = self.backend.copy_item(item, container, recurse, new_name)
        logger.info(f"Copied {item.KIND} '{item.path}' to '{container.path}'")

        holders = self._listing_holders(container.path, container)
        warm = self._begin_reconcile(holders)
        copied = self._create_item(
            container.site_list,
            join_path(container.path, str(record.get("name") or new_name or item.name)),
            record,
        )
        if warm:
            self._update_listings(holders, "_child_items", added=copied)
        return copied

    def add_site(self, container: Entity, parameters: SiteCreationParameters) -> Site:
        """Create a sub-site.

        Raises:
            InvalidArgumentError: If the parameters are missing or incomplete
            InvalidHierarchyError: If the container is not a site
        """
        self._check_child(container, Site, "add site")
        if parameters is None:
            raise InvalidArgumentError("parameters", "site creation parameters must be provided")
        parameters.check()
        record = self.backend.add_site(container, parameters)
        logger.info(f"Created site '{parameters.effective_name}' in '{container.path or '/'}'")

        holders = self._listing_holders(container.path, container)
        warm = self._begin_reconcile(holders)
        site = self._create_site(
            join_path(container.path, str(record.get("name") or parameters.effective_name)),
            record,
        )
        if warm:
            self._update_listings(holders, "_child_sites", added=site)
        return site

    def add_list(self, container: Entity, parameters: ListCreationParameters) -> SiteList:
        """Create a list on a site or in a container group.

        Raises:
            InvalidArgumentError: If the parameters are missing or incomplete
            InvalidHierarchyError: If the container cannot hold lists
        """
        self._check_child(container, SiteList, "add list")
        if parameters is None:
            raise InvalidArgumentError("parameters", "list creation parameters must be provided")
        parameters.check()
        if isinstance(container, ContainerGroup):
            site = container.site
            parameters = replace(parameters, name=join_path(container.name, parameters.name))
        else:
            site = container
        record = self.backend.add_list(site, parameters)
        logger.info(f"Created list '{parameters.name}' in '{site.path or '/'}'")

        holders = self._listing_holders(site.path, site)
        warm = self._begin_reconcile(holders)
        site_list = self._create_list(site, record)
        if warm:
            self._update_listings(holders, "_all_lists", added=site_list)
        return site_list

    def add_folder(self, container: Entity, name: str) -> Folder:
        self._check_child(container, Folder, "add folder")
        name = self._check_name(name)
        record = self.backend.add_folder(container, name)
        logger.info(f"Created folder '{name}' in '{container.path}'")
        return self._add_to_container(container, name, record)

    def add_item(self, container: Entity, name: str) -> Item:
        self._check_child(container, Item, "add item")
        name = self._check_name(name)
        record = self.backend.add_item(container, name)
        logger.info(f"Created item '{name}' in '{container.path}'")
        return self._add_to_container(container, name, record)

    def add_file(self, container: Entity, name: str, content: Content) -> File:
        """Create a file in a document library or a library folder.

        Raises:
            UnsupportedOperationError: If the container cannot hold files
        """
        self._check_child(container, File, "add file")
        require_capability(container, ContentContainer, "add file")
        name = self._check_name(name)
        data = self._read_content(content)
        record = self.backend.add_file(container, name, data)
        logger.info(f"Created file '{name}' in '{container.path}' ({len(data)} bytes)")
        return self._add_to_container(container, name, record)

    def open_file(self, file: Entity, version: Optional[str] = None) -> BinaryIO:
        """Return a stream with the content of a file, the latest version by default."""
        require_capability(file, ContentBearing, "open")
        return io.BytesIO(self.backend.open_file(file, version))

    def save_file(self, file: Entity, content: Content) -> File:
        """Store new content of a file as its latest version."""
        require_capability(file, ContentBearing, "save")
        data = self._read_content(content)
        record = self.backend.save_file(file, data)
        logger.info(f"Saved file '{file.path}' ({len(data)} bytes)")

        holders = self._item_parent_holders(file)
        warm = self._begin_reconcile(holders)
        saved = self._create_item(file.site_list, file.path, record)
        if warm:
            self._update_listings(holders, "_child_items", added=saved)
        return saved

    def clear_cache(self, include_root: bool = False) -> None:
        """Drop the cached content; with include_root also forget the drive root."""
        self.cache.invalidate()
        if include_root:
            self._root = None
        logger.info(f"Cache cleared{' including the drive root' if include_root else ''}")

    # Path walking

    def _get_root(self) -> Entity:
        parts = split_path(self.root_path)
        site, index = self._find_site(self._get_site(""), parts, 0)
        if index == len(parts):
            return site
        container = self._get_list_or_group(site, parts[index])
        index += 1
        if isinstance(container, ContainerGroup) and index < len(parts):
            container = self._get_list(container, parts[index])
            index += 1
        if index < len(parts):
            raise InvalidArgumentError(
                "root",
                f"'{self.root_path}' does not lead to a site, a container group or a list",
            )
        return container

    def _walk(self, start: Entity, parts: List[str], path: str) -> Entity:
        entity = start
        index = 0
        if isinstance(entity, Site):
            entity, index = self._find_site(entity, parts, index)
            if index == len(parts):
                return entity
            entity = self._get_list_or_group(entity, parts[index])
            index += 1
        if isinstance(entity, ContainerGroup) and index < len(parts):
            entity = self._get_list(entity, parts[index])
            index += 1
        if index == len(parts):
            return entity
        if isinstance(entity, SiteList):
            return self._get_item(entity, join_segments(parts, index))
        raise ObjectNotFoundError(path)

    def _find_site(self, site: Site, parts: List[str], index: int) -> Tuple[Site, int]:
        """Consume as many leading segments as name nested sub-sites."""
        while index < len(parts):
            child = self._get_child_site(site, parts[index])
            if child is None:
                break
            site = child
            index += 1
        return site, index

    def _get_site(self, path: str) -> Site:
        cached = self.cache.get(path)
        if isinstance(cached, Site):
            return cached
        return self._create_site(path, self.backend.query_site(path))

    def _get_child_site(self, site: Site, name: str) -> Optional[Site]:
        cached = self.cache.get(join_path(site.path, name))
        if cached is not None:
            return cached if isinstance(cached, Site) else None
        for child in self.get_sites(site):
            if paths_equal(child.name, name):
                return child
        return None

    def _get_list_or_group(self, site: Site, name: str) -> Union[SiteList, ContainerGroup]:
        path = join_path(site.path, name)
        cached = self.cache.get(path)
        if isinstance(cached, (SiteList, ContainerGroup)):
            return cached
        for site_list in self.get_lists(site):
            if paths_equal(site_list.site_relative_path, name):
                return site_list
        for group in self.get_container_groups(site):
            if paths_equal(group.name, name):
                return group
        raise ObjectNotFoundError(path, "no such list or container group")

    def _get_list(self, group: ContainerGroup, name: str) -> SiteList:
        path = join_path(group.path, name)
        cached = self.cache.get(path)
        if isinstance(cached, SiteList):
            return cached
        for site_list in self.get_lists(group):
            if paths_equal(site_list.name, name):
                return site_list
        raise ObjectNotFoundError(path, "no such list")

    def _get_item(self, site_list: SiteList, relative_path: str) -> Item:
        path = join_path(site_list.path, relative_path)
        cached = self.cache.get(path)
        if isinstance(cached, Item):
            return cached
        record = self.backend.query_item(site_list, relative_path)
        name = str(record.get("name") or get_child_name(path))
        # The caller's spelling of folder segments is replaced by the cached
        # folder's own path when the folder is known
        parent_path = get_parent_path(path)
        parent = self.cache.get(parent_path)
        if isinstance(parent, (SiteList, Folder)):
            parent_path = parent.path
        return self._create_item(site_list, join_path(parent_path, name), record)

    def _get_all_lists(self, site: Site) -> List[SiteList]:
        if site._all_lists is None or not self.cache.check():
            records = self.backend.query_lists(site)
            site._all_lists = [self._create_list(site, record) for record in records]
        return list(site._all_lists)

    def _infer_group(self, site: Site, name: str) -> ContainerGroup:
        path = join_path(site.path, name)
        cached = self.cache.get(path)
        if isinstance(cached, ContainerGroup):
            return cached
        group = ContainerGroup(path=path, title=name, connector=self, site=site)
        self.cache.put(group)
        return group

    # Entity factory

    def _create_site(self, path: str, record: Record) -> Site:
        site = Site(
            path=path,
            title=str(record.get("title") or get_child_name(path)),
            connector=self,
            id=record.get("id") or None,
        )
        return self._finalize(site, record)

    def _create_list(self, site: Site, record: Record) -> SiteList:
        relative_path = normalize_path(str(record.get("name", "")))
        list_class = Library if to_bool(record.get("library")) else SiteList
        site_list = list_class(
            path=join_path(site.path, relative_path),
            title=str(record.get("title") or get_child_name(relative_path)),
            connector=self,
            site=site,
            id=record.get("id") or None,
            created=parse_timestamp(record.get("created")),
            modified=parse_timestamp(record.get("modified")),
            deleted=parse_timestamp(record.get("deleted")),
            item_count=to_int(record.get("item_count")),
            fields=_parse_fields(record.get("fields")),
        )
        # List records may be the first to reveal the identifier of their site
        site.learn_id(record.get("site_id"))
        return self._finalize(site_list, record)

    def _create_item(self, site_list: SiteList, path: str, record: Record) -> Item:
        item_type = str(record.get("type") or "item").lower()
        common: Dict[str, Any] = dict(
            path=path,
            title=str(record.get("title") or get_child_name(path)),
            connector=self,
            site_list=site_list,
            id=to_int(record.get("id")),
            unique_id=record.get("unique_id"),
            created=parse_timestamp(record.get("created")),
            modified=parse_timestamp(record.get("modified")),
        )
        if item_type == "folder":
            folder_class = LibraryFolder if isinstance(site_list, Library) else Folder
            item: Item = folder_class(child_count=to_int(record.get("child_count")), **common)
        elif item_type == "file":
            item = File(size=to_int(record.get("size")), **common)
        else:
            item = Item(**common)
        return self._finalize(item, record)

    def _finalize(self, entity: Any, record: Record) -> Any:
        entity._properties.update(record)
        self.cache.put(entity)
        return entity

    # Validation

    def _check_child(self, container: Entity, kind: Type[Entity], operation: str) -> None:
        if container is None:
            raise InvalidArgumentError("container", "a parent container must be provided")
        if not isinstance(container, Container):
            raise UnsupportedOperationError(operation, container.KIND, container.path)
        container.check_can_be_child(kind)

    def _check_target(self, item: Item, target: Entity, operation: str) -> ItemContainer:
        if target is None:
            raise InvalidArgumentError("target", "a target container must be provided")
        if not isinstance(target, Container):
            raise UnsupportedOperationError(operation, target.KIND, target.path)
        target.check_can_be_child(item)
        if isinstance(item, File) and not isinstance(target, ContentContainer):
            raise InvalidHierarchyError(target.path, "file", "items and folders")
        if isinstance(item, Folder) and starts_with_path(target.path, item.path):
            raise InvalidHierarchyError(target.path, f"its own ancestor folder '{item.path}'")
        return target

    def _check_name(self, name: Optional[str], argument: str = "name") -> str:
        if name is None or not name.strip():
            raise InvalidArgumentError(argument, "a name must be provided")
        name = name.strip()
        if "/" in name or "\\" in name:
            raise InvalidArgumentError(argument, f"name '{name}' cannot contain a slash")
        return name

    def _read_content(self, content: Content) -> bytes:
        if content is None:
            raise InvalidArgumentError("content", "content must be provided")
        if isinstance(content, str):
            return content.encode("utf-8")
        if isinstance(content, (bytes, bytearray)):
            return bytes(content)
        if hasattr(content, "read"):
            data = content.read()
            return data.encode("utf-8") if isinstance(data, str) else bytes(data)
        raise InvalidArgumentError(
            "content", f"expected bytes, text or a stream, got {type(content).__name__}"
        )

    # Cache reconciliation

    def _add_to_container(self, container: Entity, name: str, record: Record) -> Item:
        holders = self._listing_holders(container.path, container)
        warm = self._begin_reconcile(holders)
        item = self._create_item(
            container.site_list,
            join_path(container.path, str(record.get("name") or name)),
            record,
        )
        if warm:
            self._update_listings(holders, "_child_items", added=item)
        return item

    def _item_parent_holders(self, item: Item) -> List[Entity]:
        parent_path = get_parent_path(item.path)
        if paths_equal(parent_path, item.site_list.path):
            return self._listing_holders(parent_path, item.site_list)
        return self._listing_holders(parent_path)

    def _listing_holders(self, path: str, known: Optional[Entity] = None) -> List[Entity]:
        """Collect the distinct entities which may hold a cached listing of a container."""
        holders: List[Entity] = []
        for candidate in (known, self.cache.peek(path), self._root):
            if candidate is None or not paths_equal(candidate.path, path):
                continue
            if all(candidate is not holder for holder in holders):
                holders.append(candidate)
        return holders

    def _begin_reconcile(self, holders: List[Entity]) -> bool:
        """Check the window; a lapsed one makes the listings of the holders unknown."""
        if self.cache.check():
            return True
        for holder in holders:
            _forget_children(holder)
        return False

    def _update_listings(
        self,
        holders: List[Entity],
        slot: str,
        removed: Optional[str] = None,
        added: Optional[Entity] = None,
    ) -> None:
        for holder in holders:
            entries = getattr(holder, slot, None)
            if entries is None:
                continue
            if removed is not None:
                entries = [entry for entry in entries if not paths_equal(entry.path, removed)]
            if added is not None:
                entries = [entry for entry in entries if not paths_equal(entry.path, added.path)]
                entries.append(added)
            setattr(holder, slot, entries)

    def _on_cache_cold(self) -> None:
        # The anchor root lives outside the cache; its listings lapse with it
        if self._root is not None:
            _forget_children(self._root)


def _forget_children(entity: Entity) -> None:
    for slot in CHILD_SLOTS:
        if getattr(entity, slot, None) is not None:
            setattr(entity, slot, None)


def _parse_fields(raw: Any) -> Optional[List[FieldDefinition]]:
    if not raw:
        return None
    fields = []
    for entry in raw:
        if isinstance(entry, str):
            fields.append(FieldDefinition(name=entry))
        else:
            fields.append(FieldDefinition(
                name=str(entry.get("name", "")),
                title=str(entry.get("title", "")),
                hidden=to_bool(entry.get("hidden", False)),
                read_only=to_bool(entry.get("read_only", False)),
            ))
    return fields
