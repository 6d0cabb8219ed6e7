"""Entity model for the remote repository tree.

This module defines the objects callers observe when they navigate a drive:
sites, container groups, lists (and document libraries), items, folders and
files. All entities use dataclasses for clean data structures and implement a
small set of capability mixins (Removable, Manipulable, ContentBearing and the
container flavours) which callers probe at runtime instead of relying on a
fixed inheritance chain.

Entities are built only by the CachingConnector. They carry a back-reference
to it and delegate every operation there; callers never mutate them.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    BinaryIO,
    ClassVar,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from requests.structures import CaseInsensitiveDict

from .errors import InvalidHierarchyError, UnsupportedOperationError
from .path_utils import get_child_name, strip_prefix

if TYPE_CHECKING:
    from .connector import CachingConnector
    from .parameters import ListCreationParameters, SiteCreationParameters

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(eq=False)
class Entity:
    """Common part of every object exposed by the drive.

    Attributes:
        path: Slash-separated path relative to the backend root site
        title: Display label, may differ from the name
        connector: Connector which produced the entity (operations go there)
    """
    KIND: ClassVar[str] = "object"

    path: str
    title: str = ""
    connector: Optional["CachingConnector"] = field(default=None, repr=False)
    _properties: CaseInsensitiveDict = field(
        default_factory=CaseInsensitiveDict, repr=False
    )

    @property
    def name(self) -> str:
        """Last segment of the path."""
        return get_child_name(self.path)

    @property
    def properties(self) -> Mapping:
        """Read-only, case-insensitive view of the raw backend fields."""
        return MappingProxyType(self._properties)

    def _require_connector(self) -> "CachingConnector":
        if self.connector is None:
            raise UnsupportedOperationError("connected operation", self.KIND, self.path)
        return self.connector


# Capability mixins. Concrete entities implement only the ones that apply to
# them; the connector and callers test for them with isinstance().


class Removable(ABC):
    """An object which can be deleted."""

    @abstractmethod
    def remove(self, recurse: bool = False) -> None:
        ...


class Manipulable(Removable):
    """An object which can be renamed, copied and moved besides deleted."""

    @abstractmethod
    def rename(self, new_name: str) -> "Entity":
        ...

    @abstractmethod
    def copy(self, target: "Container", recurse: bool = False,
             new_name: Optional[str] = None) -> "Entity":
        ...

    @abstractmethod
    def move(self, target: "Container") -> "Entity":
        ...


class ContentBearing(ABC):
    """An object carrying binary content."""

    @abstractmethod
    def open(self, version: Optional[str] = None) -> BinaryIO:
        ...

    @abstractmethod
    def save(self, content: Union[bytes, BinaryIO]) -> "Entity":
        ...


class Container(ABC):
    """An object with children of specific kinds."""

    @abstractmethod
    def has_children(self) -> bool:
        ...

    @abstractmethod
    def get_children(self) -> List["Entity"]:
        ...

    @classmethod
    @abstractmethod
    def allowed_children(cls) -> Tuple[type, ...]:
        ...

    def check_can_be_child(self, child: Union["Entity", type]) -> None:
        """Fail unless the candidate (an entity or an entity class) may be a child.

        Raises:
            InvalidHierarchyError: If the candidate kind is not allowed here
        """
        kind = child if isinstance(child, type) else type(child)
        allowed = self.allowed_children()
        if not issubclass(kind, allowed):
            raise InvalidHierarchyError(
                getattr(self, "path", ""),
                describe_kind(kind),
                " or ".join(describe_kind(item) for item in allowed),
            )


class ListContainer(Container):
    """A container of lists: a site or a container group."""

    @abstractmethod
    def add_list(self, parameters: "ListCreationParameters") -> "SiteList":
        ...


class ItemContainer(Container):
    """A container of items: a list or a folder."""

    @classmethod
    def allowed_children(cls) -> Tuple[type, ...]:
        return (Item,)

    @abstractmethod
    def add_folder(self, name: str) -> "Folder":
        ...

    @abstractmethod
    def add_item(self, name: str) -> "Item":
        ...


class ContentContainer(ItemContainer):
    """An item container which can also hold files."""

    @abstractmethod
    def add_file(self, name: str, content: Union[bytes, BinaryIO]) -> "File":
        ...


@dataclass
class FieldDefinition:
    """Field definition of a list, used to limit what is requested about items."""
    name: str
    title: str = ""
    hidden: bool = False
    read_only: bool = False


@dataclass(eq=False)
class Site(Entity, Removable, ListContainer):
    """Web site: the root or an intermediate container.

    The identifier may stay unknown until a child list record reveals it; it
    changes at most once, from None to the learned value.
    """
    KIND: ClassVar[str] = "site"

    id: Optional[str] = None
    _child_sites: Optional[List["Site"]] = field(default=None, init=False, repr=False)
    _all_lists: Optional[List["SiteList"]] = field(default=None, init=False, repr=False)

    @property
    def site(self) -> "Site":
        return self

    @property
    def site_relative_path(self) -> str:
        return ""

    @classmethod
    def allowed_children(cls) -> Tuple[type, ...]:
        return (Site, SiteList, ContainerGroup)

    def learn_id(self, site_id: Optional[str]) -> bool:
        """Record the identifier if it was unknown so far.

        Returns:
            True if the identifier has been set by this call
        """
        if not site_id:
            return False
        if self.id is None:
            self.id = site_id
            logger.debug(f"Learned id {site_id} of site '{self.path}'")
            return True
        if self.id != site_id:
            logger.warning(
                f"Site '{self.path}' keeps id {self.id}, ignoring reported {site_id}"
            )
        return False

    def has_children(self) -> bool:
        return self._require_connector().has_children(self)

    def get_children(self) -> List[Entity]:
        return self._require_connector().get_children(self)

    def remove(self, recurse: bool = False) -> None:
        self._require_connector().remove_site(self)

    def add_site(self, parameters: "SiteCreationParameters") -> "Site":
        return self._require_connector().add_site(self, parameters)

    def add_list(self, parameters: "ListCreationParameters") -> "SiteList":
        return self._require_connector().add_list(self, parameters)


@dataclass(eq=False)
class ContainerGroup(Entity, ListContainer):
    """Inferred path segment shared by lists which are not placed directly on a site.

    A list whose site-relative path is "Lists/Tasks" makes "Lists" appear as a
    container group between the site and the list. Groups have no identity and
    are never persisted; they exist as long as a list maps under them.
    """
    KIND: ClassVar[str] = "container group"

    site: Optional[Site] = None

    @property
    def site_relative_path(self) -> str:
        return self.name

    @classmethod
    def allowed_children(cls) -> Tuple[type, ...]:
        return (SiteList,)

    def has_children(self) -> bool:
        return self._require_connector().has_children(self)

    def get_children(self) -> List[Entity]:
        return self._require_connector().get_children(self)

    def add_list(self, parameters: "ListCreationParameters") -> "SiteList":
        return self._require_connector().add_list(self, parameters)


@dataclass(eq=False)
class SiteList(Entity, Removable, ItemContainer):
    """List of items placed on a site, directly or in a container group."""
    KIND: ClassVar[str] = "list"

    site: Optional[Site] = None
    id: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    deleted: Optional[datetime] = None
    item_count: int = 0
    fields: Optional[List[FieldDefinition]] = None
    _child_items: Optional[List["Item"]] = field(default=None, init=False, repr=False)

    @property
    def site_list(self) -> "SiteList":
        return self

    @property
    def site_relative_path(self) -> str:
        """Path below the owning site, for example "Lists/Tasks"."""
        return strip_prefix(self.path, self.site.path) if self.site else self.path

    @property
    def list_relative_path(self) -> str:
        return ""

    def has_children(self) -> bool:
        return self._require_connector().has_children(self)

    def get_children(self) -> List[Entity]:
        return self._require_connector().get_children(self)

    def remove(self, recurse: bool = False) -> None:
        self._require_connector().remove_list(self)

    def add_folder(self, name: str) -> "Folder":
        return self._require_connector().add_folder(self, name)

    def add_item(self, name: str) -> "Item":
        return self._require_connector().add_item(self, name)


@dataclass(eq=False)
class Library(SiteList, ContentContainer):
    """Document library: a list which can hold files."""
    KIND: ClassVar[str] = "library"

    def add_file(self, name: str, content: Union[bytes, BinaryIO]) -> "File":
        return self._require_connector().add_file(self, name, content)


@dataclass(eq=False)
class Item(Entity, Manipulable):
    """List item carrying only metadata, neither a folder nor a file.

    Attributes:
        site_list: List the item lives in
        id: Integer identifier, unique within the list but not stable over moves
        unique_id: Stable unique identifier
    """
    KIND: ClassVar[str] = "item"

    site_list: Optional[SiteList] = None
    id: int = 0
    unique_id: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    @property
    def list_relative_path(self) -> str:
        return strip_prefix(self.path, self.site_list.path)

    @property
    def site_relative_path(self) -> str:
        return strip_prefix(self.path, self.site_list.site.path)

    def rename(self, new_name: str) -> "Item":
        return self._require_connector().rename_item(self, new_name)

    def copy(self, target: Container, recurse: bool = False,
             new_name: Optional[str] = None) -> "Item":
        return self._require_connector().copy_item(self, target, recurse, new_name)

    def move(self, target: Container) -> "Item":
        return self._require_connector().move_item(self, target)

    def remove(self, recurse: bool = False) -> None:
        self._require_connector().remove_item(self)


@dataclass(eq=False)
class Folder(Item, ItemContainer):
    """List item which can contain other items."""
    KIND: ClassVar[str] = "folder"

    child_count: int = 0
    _child_items: Optional[List[Item]] = field(default=None, init=False, repr=False)

    def has_children(self) -> bool:
        return self._require_connector().has_children(self)

    def get_children(self) -> List[Entity]:
        return self._require_connector().get_children(self)

    def add_folder(self, name: str) -> "Folder":
        return self._require_connector().add_folder(self, name)

    def add_item(self, name: str) -> Item:
        return self._require_connector().add_item(self, name)


@dataclass(eq=False)
class LibraryFolder(Folder, ContentContainer):
    """Folder in a document library, which can hold files too."""

    def add_file(self, name: str, content: Union[bytes, BinaryIO]) -> "File":
        return self._require_connector().add_file(self, name, content)


@dataclass(eq=False)
class File(Item, ContentBearing):
    """List item in a document library with binary content."""
    KIND: ClassVar[str] = "file"

    size: int = 0

    def open(self, version: Optional[str] = None) -> BinaryIO:
        return self._require_connector().open_file(self, version)

    def save(self, content: Union[bytes, BinaryIO]) -> "File":
        return self._require_connector().save_file(self, content)


def describe_kind(kind: type) -> str:
    """Return a readable name of an entity class."""
    return getattr(kind, "KIND", kind.__name__)


def as_capability(entity: object, capability: Type[T]) -> Optional[T]:
    """Return the entity if it implements the capability, None otherwise."""
    return entity if isinstance(entity, capability) else None


def require_capability(entity: object, capability: Type[T], operation: str) -> T:
    """Return the entity if it implements the capability.

    Raises:
        UnsupportedOperationError: If the capability is absent
    """
    if not isinstance(entity, capability):
        raise UnsupportedOperationError(
            operation,
            getattr(entity, "KIND", type(entity).__name__),
            getattr(entity, "path", None),
        )
    return entity
