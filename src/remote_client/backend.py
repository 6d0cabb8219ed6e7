"""Backend capability contract.

The caching connector resolves paths and maintains its cache entirely in
terms of this contract; it never talks to a remote service directly. A
concrete backend implements the protected ``_xxx`` methods. The public methods
wrap them with guarded_call, so throttled requests are retried and transport
errors surface as ObjectNotFoundError or BackendUnavailableError.

Every query and mutation returns raw records: plain dictionaries with the
fields below. Unknown keys are kept and exposed in the entity property bag.

Site record:
    id: Site identifier (optional)
    name: Last segment of the site path
    title: Display title

List record:
    id: List identifier
    name: Site-relative path, "Group/Name" for lists in a container group
    title: Display title
    site_id: Identifier of the owning site (optional)
    created, modified, deleted: ISO 8601 timestamps (deleted is optional)
    item_count: Number of items anywhere in the list
    library: True for document libraries which can hold files
    fields: Optional list of {name, title, hidden, read_only}

Item record:
    id: Integer identifier unique within the list
    unique_id: Stable unique identifier
    name: Item name
    title: Display title
    type: "item", "folder" or "file"
    created, modified: ISO 8601 timestamps
    child_count: Number of direct children (folders)
    size: Byte length of the latest version (files)

Paths passed to the backend use forward slashes with no leading or trailing
slash and are relative to the backend's root site.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .api_guard import guarded_call

if TYPE_CHECKING:
    from src.drive.models import (
        ContentContainer,
        File,
        Item,
        ItemContainer,
        Site,
        SiteList,
    )
    from src.drive.parameters import ListCreationParameters, SiteCreationParameters

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class Backend(ABC):
    """Abstract access to a remote repository.

    Example:
        >>> backend = MemoryBackend(snapshot)
        >>> records = backend.query_lists(site)
        >>> [record["name"] for record in records]
        ['Documents', 'Lists/Tasks']
    """

    description = "backend"

    # Queries

    def query_sites(self, site: "Site") -> List[Record]:
        """List the immediate child sites of a site."""
        logger.debug(f"Backend: query sites of '{site.path}'")
        return guarded_call("query_sites", self._query_sites, site, path=site.path)

    def query_lists(self, site: "Site") -> List[Record]:
        """List all lists of a site, including those in container groups."""
        logger.debug(f"Backend: query lists of '{site.path}'")
        return guarded_call("query_lists", self._query_lists, site, path=site.path)

    def query_items(self, container: "ItemContainer") -> List[Record]:
        """List the immediate child items of a list or a folder."""
        logger.debug(f"Backend: query items of '{container.path}'")
        return guarded_call("query_items", self._query_items, container, path=container.path)

    def query_site(self, path: str) -> Record:
        """Fetch a single site by its full relative path ("" is the root site)."""
        logger.debug(f"Backend: query site '{path}'")
        return guarded_call("query_site", self._query_site, path, path=path)

    def query_item(self, site_list: "SiteList", path: str) -> Record:
        """Fetch a single item by its list and list-relative path."""
        logger.debug(f"Backend: query item '{path}' in '{site_list.path}'")
        return guarded_call(
            "query_item", self._query_item, site_list, path,
            path=f"{site_list.path}/{path}",
        )

    # Mutations

    def remove_site(self, site: "Site") -> None:
        guarded_call("remove_site", self._remove_site, site, path=site.path)

    def remove_list(self, site_list: "SiteList") -> None:
        guarded_call("remove_list", self._remove_list, site_list, path=site_list.path)

    def remove_item(self, item: "Item") -> None:
        guarded_call("remove_item", self._remove_item, item, path=item.path)

    def rename_item(self, item: "Item", new_name: str) -> Record:
        return guarded_call("rename_item", self._rename_item, item, new_name, path=item.path)

    def copy_item(
        self,
        item: "Item",
        target: "ItemContainer",
        recurse: bool,
        new_name: Optional[str] = None
    ) -> Record:
        return guarded_call(
            "copy_item", self._copy_item, item, target, recurse, new_name, path=item.path
        )

    def move_item(self, item: "Item", target: "ItemContainer") -> Record:
        return guarded_call("move_item", self._move_item, item, target, path=item.path)

    def add_site(self, site: "Site", parameters: "SiteCreationParameters") -> Record:
        return guarded_call("add_site", self._add_site, site, parameters, path=site.path)

    def add_list(self, site: "Site", parameters: "ListCreationParameters") -> Record:
        return guarded_call("add_list", self._add_list, site, parameters, path=site.path)

    def add_folder(self, container: "ItemContainer", name: str) -> Record:
        return guarded_call("add_folder", self._add_folder, container, name, path=container.path)

    def add_item(self, container: "ItemContainer", name: str) -> Record:
        return guarded_call("add_item", self._add_item, container, name, path=container.path)

    # Content

    def add_file(self, container: "ContentContainer", name: str, content: bytes) -> Record:
        return guarded_call(
            "add_file", self._add_file, container, name, content, path=container.path
        )

    def open_file(self, file: "File", version: Optional[str] = None) -> bytes:
        return guarded_call("open_file", self._open_file, file, version, path=file.path)

    def save_file(self, file: "File", content: bytes) -> Record:
        return guarded_call("save_file", self._save_file, file, content, path=file.path)

    # Implementation hooks

    @abstractmethod
    def _query_sites(self, site: "Site") -> List[Record]:
        ...

    @abstractmethod
    def _query_lists(self, site: "Site") -> List[Record]:
        ...

    @abstractmethod
    def _query_items(self, container: "ItemContainer") -> List[Record]:
        ...

    @abstractmethod
    def _query_site(self, path: str) -> Record:
        ...

    @abstractmethod
    def _query_item(self, site_list: "SiteList", path: str) -> Record:
        ...

    @abstractmethod
    def _remove_site(self, site: "Site") -> None:
        ...

    @abstractmethod
    def _remove_list(self, site_list: "SiteList") -> None:
        ...

    @abstractmethod
    def _remove_item(self, item: "Item") -> None:
        ...

    @abstractmethod
    def _rename_item(self, item: "Item", new_name: str) -> Record:
        ...

    @abstractmethod
    def _copy_item(self, item: "Item", target: "ItemContainer", recurse: bool,
                   new_name: Optional[str]) -> Record:
        ...

    @abstractmethod
    def _move_item(self, item: "Item", target: "ItemContainer") -> Record:
        ...

    @abstractmethod
    def _add_site(self, site: "Site", parameters: "SiteCreationParameters") -> Record:
        ...

    @abstractmethod
    def _add_list(self, site: "Site", parameters: "ListCreationParameters") -> Record:
        ...

    @abstractmethod
    def _add_folder(self, container: "ItemContainer", name: str) -> Record:
        ...

    @abstractmethod
    def _add_item(self, container: "ItemContainer", name: str) -> Record:
        ...

    @abstractmethod
    def _add_file(self, container: "ContentContainer", name: str, content: bytes) -> Record:
        ...

    @abstractmethod
    def _open_file(self, file: "File", version: Optional[str]) -> bytes:
        ...

    @abstractmethod
    def _save_file(self, file: "File", content: bytes) -> Record:
        ...
