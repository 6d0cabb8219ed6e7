"""Path-addressable view of a remote content repository.

This package exposes sites, container groups, lists, folders, files and items
as a tree navigated by slash-separated paths, with a short-lived batch cache
saving repeated backend round-trips.
"""

from .connector import CachingConnector
from .batch_cache import BatchCache, DEFAULT_KEEP_ALIVE
from .config import ConfigLoader, DriveConfig
from .models import (
    Entity,
    Site,
    ContainerGroup,
    SiteList,
    Library,
    Item,
    Folder,
    LibraryFolder,
    File,
    FieldDefinition,
    Removable,
    Manipulable,
    ContentBearing,
    Container,
    ListContainer,
    ItemContainer,
    ContentContainer,
    as_capability,
    require_capability,
)
from .parameters import ListCreationParameters, SiteCreationParameters
from .errors import (
    NavigationError,
    InvalidHierarchyError,
    UnsupportedOperationError,
    InvalidArgumentError,
    ConfigError,
)

__all__ = [
    'CachingConnector',
    'BatchCache',
    'DEFAULT_KEEP_ALIVE',
    'ConfigLoader',
    'DriveConfig',
    'Entity',
    'Site',
    'ContainerGroup',
    'SiteList',
    'Library',
    'Item',
    'Folder',
    'LibraryFolder',
    'File',
    'FieldDefinition',
    'Removable',
    'Manipulable',
    'ContentBearing',
    'Container',
    'ListContainer',
    'ItemContainer',
    'ContentContainer',
    'as_capability',
    'require_capability',
    'ListCreationParameters',
    'SiteCreationParameters',
    'NavigationError',
    'InvalidHierarchyError',
    'UnsupportedOperationError',
    'InvalidArgumentError',
    'ConfigError',
]
