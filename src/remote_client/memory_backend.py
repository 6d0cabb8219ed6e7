"""In-memory backend serving a repository snapshot.

MemoryBackend simulates a remote repository with nested dictionaries loaded
from a snapshot (see snapshot.py). It implements the whole backend contract,
so the drive can be used offline, demonstrated from the command line and
exercised by tests without a server.

Derived values are computed the way a real repository reports them: a
folder's modification time is the latest of its own and its descendants', a
list's is the latest of its creation, last deletion and items', and a file's
size is the byte length of its latest version.
"""

import base64
import copy
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .backend import Backend, Record
from .errors import ObjectExistsError, ObjectNotFoundError
from .snapshot import SnapshotStore
from .values import format_timestamp, parse_timestamp, to_int, utc_now
from src.drive.path_utils import get_parent_path, join_path, split_path

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

Node = Dict[str, Any]

ITEM = "item"
FOLDER = "folder"
FILE = "file"


class MemoryBackend(Backend):
    """Backend holding the repository content in memory.

    Example:
        >>> backend = MemoryBackend.from_snapshot("repo.yaml")
        >>> connector = CachingConnector(backend)
        >>> connector.resolve("Shared Documents/readme.txt").size
        5
    """

    description = "in-memory snapshot"

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        on_change: Optional[Callable[[Dict[str, Any]], None]] = None
    ):
        """Initialize the backend.

        Args:
            data: Snapshot dictionary; an empty repository if None
            on_change: Called with the snapshot after every successful mutation
        """
        self.data = data if data is not None else SnapshotStore.empty()
        self._on_change = on_change

    @classmethod
    def from_snapshot(cls, snapshot_path: str, persist: bool = True) -> "MemoryBackend":
        """Create a backend from a snapshot file, optionally saving changes back."""
        data = SnapshotStore.load(snapshot_path)
        on_change = None
        if persist:
            def on_change(snapshot: Dict[str, Any]) -> None:
                SnapshotStore.save(snapshot_path, snapshot)
        logger.info(f"Loaded repository snapshot from {snapshot_path}")
        return cls(data, on_change)

    # Queries

    def _query_sites(self, site: "Site") -> List[Record]:
        node = self._find_site_node(site.path)
        return [self._site_record(child) for child in node.get("sites") or []]

    def _query_lists(self, site: "Site") -> List[Record]:
        node = self._find_site_node(site.path)
        return [
            self._list_record(child, node.get("id"))
            for child in node.get("lists") or []
        ]

    def _query_items(self, container: "ItemContainer") -> List[Record]:
        node = self._find_container_node(container)
        return [self._item_record(child) for child in node.get("items") or []]

    def _query_site(self, path: str) -> Record:
        return self._site_record(self._find_site_node(path))

    def _query_item(self, site_list: "SiteList", path: str) -> Record:
        list_node = self._find_list_node(site_list)
        return self._item_record(self._find_item_node(list_node, site_list.path, path))

    # Mutations

    def _remove_site(self, site: "Site") -> None:
        parent = self._find_site_node(get_parent_path(site.path))
        node = self._find_site_node(site.path)
        parent["sites"] = [child for child in parent.get("sites") or [] if child is not node]
        self._changed()

    def _remove_list(self, site_list: "SiteList") -> None:
        site_node = self._find_site_node(site_list.site.path)
        node = self._find_list_node(site_list)
        site_node["lists"] = [child for child in site_node.get("lists") or [] if child is not node]
        self._changed()

    def _remove_item(self, item: "Item") -> None:
        # The list remembers when something was deleted from it; its own
        # modification time is derived from its items.
        list_node = self._find_list_node(item.site_list)
        parent = self._find_parent_node(list_node, item)
        node = self._find_item_node(list_node, item.site_list.path, item.list_relative_path)
        now = _now()
        parent["items"] = [child for child in parent.get("items") or [] if child is not node]
        if parent is not list_node:
            parent["modified"] = now
        list_node["deleted"] = now
        self._changed()

    def _rename_item(self, item: "Item", new_name: str) -> Record:
        list_node = self._find_list_node(item.site_list)
        parent = self._find_parent_node(list_node, item)
        node = self._find_item_node(list_node, item.site_list.path, item.list_relative_path)
        if _find_named(parent.get("items") or [], new_name) not in (None, node):
            raise ObjectExistsError(new_name, get_parent_path(item.path))
        self._rename_node(node, new_name)
        node["modified"] = _now()
        self._changed()
        return self._item_record(node)

    def _copy_item(
        self,
        item: "Item",
        target: "ItemContainer",
        recurse: bool,
        new_name: Optional[str]
    ) -> Record:
        # Items and files are always copied whole (files keep their versions);
        # only folders honour the recurse flag.
        list_node = self._find_list_node(item.site_list)
        source = self._find_item_node(list_node, item.site_list.path, item.list_relative_path)
        if recurse or source.get("type", ITEM) != FOLDER:
            clone = copy.deepcopy(source)
        else:
            clone = {key: copy.deepcopy(value) for key, value in source.items() if key != "items"}
            clone["items"] = []
        target_list = self._find_list_node(target.site_list)
        counter = [_last_item_id(target_list)]
        self._initialize_clone(clone, counter)
        target_node = self._find_container_node(target)
        self._place_node(clone, target_node, target.path, new_name)
        self._changed()
        return self._item_record(clone)

    def _move_item(self, item: "Item", target: "ItemContainer") -> Record:
        # Moving touches both parents but not the moved item. An item moved to
        # another list needs an identifier unique in that list.
        list_node = self._find_list_node(item.site_list)
        parent = self._find_parent_node(list_node, item)
        node = self._find_item_node(list_node, item.site_list.path, item.list_relative_path)
        target_list = self._find_list_node(target.site_list)
        target_node = self._find_container_node(target)
        if _find_named(target_node.get("items") or [], node.get("name", "")) is not None:
            raise ObjectExistsError(node.get("name", ""), target.path)
        new_id = None
        if target_list is not list_node:
            new_id = _last_item_id(target_list) + 1
        parent["items"] = [child for child in parent.get("items") or [] if child is not node]
        target_node.setdefault("items", []).append(node)
        if new_id is not None:
            node["id"] = new_id
        now = _now()
        parent["modified"] = now
        target_node["modified"] = now
        self._changed()
        return self._item_record(node)

    def _add_site(self, site: "Site", parameters: "SiteCreationParameters") -> Record:
        site_node = self._find_site_node(site.path)
        name = parameters.effective_name
        self._check_site_child_free(site_node, name, site.path)
        node: Node = {
            "id": str(uuid.uuid4()),
            "name": name,
            "title": parameters.title or name,
            "template": parameters.template,
        }
        if parameters.description:
            node["description"] = parameters.description
        for key in ("language", "locale", "collation_locale"):
            value = getattr(parameters, key)
            if value:
                node[key] = value
        for key in ("unique_permissions", "anonymous", "presence"):
            value = getattr(parameters, key)
            if value is not None:
                node[key] = value
        node["created"] = _now()
        node["sites"] = []
        node["lists"] = []
        site_node.setdefault("sites", []).append(node)
        self._changed()
        return self._site_record(node)

    def _add_list(self, site: "Site", parameters: "ListCreationParameters") -> Record:
        site_node = self._find_site_node(site.path)
        name = join_path("", *split_path(parameters.name))
        self._check_site_child_free(site_node, name, site.path)
        node: Node = {
            "id": str(uuid.uuid4()),
            "name": name,
            "title": split_path(name)[-1],
            "template": parameters.template,
            "library": parameters.library,
        }
        if parameters.description:
            node["description"] = parameters.description
        node["created"] = _now()
        node["items"] = []
        site_node.setdefault("lists", []).append(node)
        self._changed()
        return self._list_record(node, site_node.get("id"))

    def _add_folder(self, container: "ItemContainer", name: str) -> Record:
        node = self._add_item_node(container, name, FOLDER)
        self._changed()
        return self._item_record(node)

    def _add_item(self, container: "ItemContainer", name: str) -> Record:
        node = self._add_item_node(container, name, ITEM)
        self._changed()
        return self._item_record(node)

    # Content

    def _add_file(self, container: "ContentContainer", name: str, content: bytes) -> Record:
        node = self._add_item_node(container, name, FILE)
        self._append_version(node, content)
        self._changed()
        return self._item_record(node)

    def _open_file(self, file: "File", version: Optional[str]) -> bytes:
        list_node = self._find_list_node(file.site_list)
        node = self._find_item_node(list_node, file.site_list.path, file.list_relative_path)
        versions = node.get("versions") or []
        if version:
            found = [entry for entry in versions if str(entry.get("number")) == str(version)]
            if not found:
                raise ObjectNotFoundError(file.path, f"version {version} not found")
            entry = found[0]
        else:
            if not versions:
                raise ObjectNotFoundError(file.path, "no version found")
            entry = versions[-1]
        return _decode(entry.get("content"))

    def _save_file(self, file: "File", content: bytes) -> Record:
        list_node = self._find_list_node(file.site_list)
        node = self._find_item_node(list_node, file.site_list.path, file.list_relative_path)
        self._append_version(node, content)
        node["modified"] = _now()
        self._changed()
        return self._item_record(node)

    # Node lookup

    def _find_site_node(self, path: str) -> Node:
        node = self.data["site"]
        for name in split_path(path):
            node = _find_named(node.get("sites") or [], name)
            if node is None:
                raise ObjectNotFoundError(path, "no such site")
        return node

    def _find_list_node(self, site_list: "SiteList") -> Node:
        site_node = self._find_site_node(site_list.site.path)
        node = _find_named(site_node.get("lists") or [], site_list.site_relative_path)
        if node is None:
            raise ObjectNotFoundError(site_list.path, "no such list")
        return node

    def _find_item_node(self, list_node: Node, list_path: str, path: str) -> Node:
        node = list_node
        for name in split_path(path):
            node = _find_named(node.get("items") or [], name)
            if node is None:
                raise ObjectNotFoundError(join_path(list_path, path), "no such item")
        return node

    def _find_container_node(self, container: "ItemContainer") -> Node:
        list_node = self._find_list_node(container.site_list)
        if not container.list_relative_path:
            return list_node
        return self._find_item_node(
            list_node, container.site_list.path, container.list_relative_path
        )

    def _find_parent_node(self, list_node: Node, item: "Item") -> Node:
        parent_path = get_parent_path(item.list_relative_path)
        return self._find_item_node(list_node, item.site_list.path, parent_path)

    # Records

    def _site_record(self, node: Node) -> Record:
        record = {key: value for key, value in node.items() if key not in ("sites", "lists")}
        record.setdefault("name", "")
        record.setdefault("title", "")
        return record

    def _list_record(self, node: Node, site_id: Optional[str]) -> Record:
        record = {key: copy.deepcopy(value) for key, value in node.items() if key != "items"}
        record.setdefault("title", "")
        record.setdefault("site_id", site_id)
        record.setdefault("library", False)
        record["item_count"] = _count_items(node)
        modified = _latest(
            node.get("created"), node.get("deleted"), node.get("modified"),
            *(_item_modified(child) for child in node.get("items") or []),
        )
        record["modified"] = format_timestamp(modified) if modified else None
        return record

    def _item_record(self, node: Node) -> Record:
        record = {
            key: value for key, value in node.items() if key not in ("items", "versions")
        }
        item_type = node.get("type") or ITEM
        record["type"] = item_type
        record.setdefault("title", "")
        modified = _item_modified(node)
        record["modified"] = format_timestamp(modified) if modified else None
        if item_type == FOLDER:
            record["child_count"] = len(node.get("items") or [])
        elif item_type == FILE:
            versions = node.get("versions") or []
            record["size"] = len(_decode(versions[-1].get("content"))) if versions else 0
            record["version_count"] = len(versions)
        return record

    # Helpers

    def _add_item_node(self, container: "ItemContainer", name: str, item_type: str) -> Node:
        target = self._find_container_node(container)
        if _find_named(target.get("items") or [], name) is not None:
            raise ObjectExistsError(name, container.path)
        list_node = self._find_list_node(container.site_list)
        node: Node = {
            "type": item_type,
            "id": _last_item_id(list_node) + 1,
            "unique_id": str(uuid.uuid4()),
            "name": name,
            "created": _now(),
        }
        if item_type == FOLDER:
            node["items"] = []
        target.setdefault("items", []).append(node)
        return node

    def _check_site_child_free(self, site_node: Node, name: str, site_path: str) -> None:
        # Sub-sites, lists and container groups share the same namespace
        first = split_path(name)[0]
        if _find_named(site_node.get("sites") or [], first) is not None:
            raise ObjectExistsError(first, site_path)
        for list_node in site_node.get("lists") or []:
            existing = str(list_node.get("name", ""))
            folded = existing.casefold()
            if folded == name.casefold():
                raise ObjectExistsError(name, site_path)
            if "/" not in name and folded.startswith(name.casefold() + "/"):
                raise ObjectExistsError(name, site_path)
            if "/" in name and "/" not in existing and folded == first.casefold():
                raise ObjectExistsError(first, site_path)

    def _place_node(
        self,
        node: Node,
        target: Node,
        target_path: str,
        new_name: Optional[str] = None
    ) -> None:
        name = new_name or node.get("name", "")
        if _find_named(target.get("items") or [], name) is not None:
            raise ObjectExistsError(name, target_path)
        if new_name:
            self._rename_node(node, new_name)
        target.setdefault("items", []).append(node)

    def _rename_node(self, node: Node, new_name: str) -> None:
        node["name"] = new_name
        if node.get("title"):
            node["title"] = new_name

    def _initialize_clone(self, node: Node, counter: List[int]) -> None:
        counter[0] += 1
        node["id"] = counter[0]
        node["unique_id"] = str(uuid.uuid4())
        node["created"] = _now()
        node.pop("modified", None)
        for child in node.get("items") or []:
            self._initialize_clone(child, counter)

    def _append_version(self, node: Node, content: bytes) -> None:
        versions = node.setdefault("versions", [])
        number = to_int(versions[-1].get("number")) + 1 if versions else 1
        versions.append({
            "number": str(number),
            "content": base64.b64encode(content).decode("ascii"),
        })

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.data)


def _find_named(nodes: List[Node], name: str) -> Optional[Node]:
    folded = name.casefold()
    for node in nodes:
        if str(node.get("name", "")).casefold() == folded:
            return node
    return None


def _count_items(node: Node) -> int:
    return sum(1 + _count_items(child) for child in node.get("items") or [])


def _last_item_id(list_node: Node) -> int:
    last = 0
    for child in list_node.get("items") or []:
        last = max(last, to_int(child.get("id")), _last_item_id(child))
    return last


def _item_modified(node: Node) -> Optional[datetime]:
    own = node.get("modified") or node.get("created")
    if (node.get("type") or ITEM) != FOLDER:
        return parse_timestamp(own)
    return _latest(own, *(_item_modified(child) for child in node.get("items") or []))


def _latest(*values: Any) -> Optional[datetime]:
    parsed = [parse_timestamp(value) for value in values if value]
    return max(parsed) if parsed else None


def _decode(content: Optional[str]) -> bytes:
    if not content:
        return b""
    return base64.b64decode(content)


def _now() -> str:
    return format_timestamp(utc_now())
