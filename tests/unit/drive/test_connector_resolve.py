"""Unit tests for path resolution and enumeration in drive.connector."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from src.drive.config import DriveConfig
from src.drive.connector import CachingConnector
from src.drive.errors import InvalidArgumentError, UnsupportedOperationError
from src.drive.models import (
    ContainerGroup,
    File,
    Folder,
    Item,
    Library,
    LibraryFolder,
    Site,
    SiteList,
)
from src.remote_client.errors import BackendUnavailableError, ObjectNotFoundError
from src.remote_client.memory_backend import MemoryBackend


class TestRoot:
    """Test cases for the drive root."""

    def test_default_root_is_backend_root_site(self, connector, backend):
        """Without an anchor the drive starts at the root site."""
        root = connector.root

        assert isinstance(root, Site)
        assert root.path == ""
        assert root.title == "Team"
        backend.query_site.assert_called_once_with("")

    def test_root_site_id_learned_from_lists(self, connector):
        """The root site id stays unknown until a list record reveals it."""
        root = connector.root
        assert root.id is None

        connector.get_lists(root)

        assert root.id == "root-site"

    def test_anchor_at_container_group(self, backend, clock):
        """A drive may start at a container group."""
        connector = CachingConnector(backend, root="Lists", clock=clock)

        assert isinstance(connector.root, ContainerGroup)
        assert connector.root.path == "Lists"

    def test_anchor_at_sub_site(self, backend, clock):
        """A drive may start at a sub-site."""
        connector = CachingConnector(backend, root="/Projects/", clock=clock)

        assert isinstance(connector.root, Site)
        assert connector.root.id == "site-projects"

    def test_anchor_at_list_in_group(self, backend, clock):
        """A drive may start at a list."""
        connector = CachingConnector(backend, root="Lists/Tasks", clock=clock)

        assert isinstance(connector.root, SiteList)
        assert connector.root.title == "Tasks"

    def test_anchor_below_list_rejected(self, backend, clock):
        """Folders and items cannot be drive roots."""
        connector = CachingConnector(backend, root="Documents/Specs", clock=clock)

        with pytest.raises(InvalidArgumentError) as exc_info:
            connector.root

        assert exc_info.value.argument == "root"

    def test_root_kept_until_cleared_with_root(self, connector, backend):
        """The root survives cache clears unless explicitly included."""
        first = connector.root

        connector.clear_cache()
        assert connector.root is first

        connector.clear_cache(include_root=True)
        assert connector.root is not first
        assert backend.query_site.call_count == 2

    def test_from_config(self, backend, clock):
        """Connectors can be built from a drive configuration."""
        connector = CachingConnector.from_config(
            backend, DriveConfig(root="Lists", keep_alive=5.0), clock
        )

        assert connector.root_path == "Lists"
        assert connector.cache.keep_alive == 5.0


class TestResolve:
    """Test cases for CachingConnector.resolve."""

    def test_resolve_library(self, connector):
        """A list flagged as library resolves to a Library."""
        docs = connector.resolve("Documents")

        assert isinstance(docs, Library)
        assert docs.item_count == 3
        assert docs.modified == datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)
        assert docs.site is connector.root

    def test_resolve_container_group(self, connector):
        """A shared prefix of list paths resolves to a container group."""
        group = connector.resolve("Lists")

        assert isinstance(group, ContainerGroup)
        assert group.site is connector.root

    def test_resolve_list_in_group(self, connector):
        """A list below a container group keeps the group in its path."""
        tasks = connector.resolve("Lists/Tasks")

        assert type(tasks) is SiteList
        assert tasks.site_relative_path == "Lists/Tasks"

    def test_resolve_file_in_folder(self, connector):
        """Paths below a list are looked up as a single item."""
        design = connector.resolve("Documents/Specs/design.txt")

        assert isinstance(design, File)
        assert design.size == 10
        assert design.id == 2
        assert design.properties["version_count"] == 2
        assert design.list_relative_path == "Specs/design.txt"

    def test_resolve_library_folder(self, connector):
        """Folders in a library can hold files."""
        specs = connector.resolve("Documents/Specs")

        assert isinstance(specs, LibraryFolder)
        assert specs.child_count == 1
        assert specs.modified == datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)

    def test_item_path_takes_known_folder_spelling(self, connector):
        """Folder segments keep their stored case once the folder is known."""
        connector.resolve("Documents/Specs")

        design = connector.resolve("DOCUMENTS/SPECS/Design.TXT")

        assert design.path == "Documents/Specs/design.txt"
        assert design.list_relative_path == "Specs/design.txt"

    def test_resolve_through_sub_site(self, connector):
        """Sub-site segments are consumed before the list segment."""
        kickoff = connector.resolve("Projects/Plans/Kickoff")

        assert type(kickoff) is Item
        assert kickoff.site_list.site.path == "Projects"
        assert kickoff.unique_id == "u-kickoff"

    def test_resolve_ignores_case_and_separators(self, connector):
        """Lookups ignore case, backslashes and surrounding slashes."""
        specs = connector.resolve("\\documents\\SPECS\\")

        assert specs.path == "Documents/Specs"

    def test_differently_cased_paths_give_same_entity(self, connector):
        first = connector.resolve("lists/TASKS/plan")

        assert connector.resolve("Lists/tasks/PLAN") is first

    def test_resolve_empty_path_is_root(self, connector):
        assert connector.resolve("/") is connector.root

    def test_missing_list(self, connector):
        """A segment naming neither a site nor a list is not found."""
        with pytest.raises(ObjectNotFoundError) as exc_info:
            connector.resolve("Nowhere/else")

        assert exc_info.value.path == "Nowhere"

    def test_missing_item(self, connector):
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Documents/missing.txt")

    def test_path_outside_anchor(self, backend, clock):
        """Paths outside the drive root are not found, even when cached."""
        connector = CachingConnector(backend, root="Lists", clock=clock)
        connector.resolve("Lists/Tasks")
        assert "Documents" in connector.cache

        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Documents")

    def test_resolve_below_anchor(self, backend, clock):
        """Paths below an anchored root resolve from it."""
        connector = CachingConnector(backend, root="Lists", clock=clock)

        plan = connector.resolve("lists/tasks/plan")

        assert plan.path == "Lists/Tasks/Plan"
        assert plan.id == 1


class TestResolveCaching:
    """Test cases for the batch cache behind resolve."""

    def test_repeated_resolve_hits_cache(self, connector, backend):
        """The second lookup within the window does not query the backend."""
        first = connector.resolve("Documents/readme.txt")

        second = connector.resolve("Documents/readme.txt")

        assert second is first
        assert backend.query_item.call_count == 1

    def test_sliding_window_keeps_cache_warm(self, connector, backend, clock):
        """Lookups in quick succession keep sharing the cache."""
        connector.resolve("Documents/readme.txt")
        clock.advance(1.5)
        connector.resolve("Documents/readme.txt")
        clock.advance(1.5)

        connector.resolve("Documents/readme.txt")

        assert backend.query_item.call_count == 1

    def test_pause_refetches(self, connector, backend, clock):
        """A pause longer than the keep-alive period refetches everything."""
        connector.resolve("Documents/readme.txt")
        clock.advance(3)

        connector.resolve("Documents/readme.txt")

        assert backend.query_item.call_count == 2
        assert backend.query_lists.call_count == 2

    def test_clear_cache_refetches(self, connector, backend):
        connector.resolve("Documents/readme.txt")

        connector.clear_cache()
        connector.resolve("Documents/readme.txt")

        assert backend.query_item.call_count == 2

    def test_entities_along_path_are_cached(self, connector):
        """Resolving a deep path caches the sites and lists passed on the way."""
        connector.resolve("Projects/Plans/Kickoff")

        assert "Projects" in connector.cache
        assert "Projects/Plans" in connector.cache
        assert "Projects/Plans/Kickoff" in connector.cache


class TestExists:
    """Test cases for CachingConnector.exists."""

    def test_existing_and_missing_paths(self, connector):
        assert connector.exists("Documents/readme.txt") is True
        assert connector.exists("Documents/nothing.txt") is False
        assert connector.exists("Nowhere") is False

    def test_wildcard_checks_for_children(self, connector):
        """A wildcard segment asks whether the container has any children."""
        assert connector.exists("Documents/*") is True
        assert connector.exists("Lists/Issues/*") is False

    def test_star_inside_name_is_matched_literally(self, connector):
        """Only a whole "*" segment asks for children; "Iss*" is a name."""
        assert connector.exists("Lists/Iss*") is False

    @patch('src.remote_client.retry_logic.time.sleep')
    def test_missing_name_with_digits_is_not_throttling(self, mock_sleep, connector):
        """Absence stays absence whatever digits the missing name holds."""
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Documents/Invoice-4291.pdf")

        assert connector.exists("Documents/Invoice-4291.pdf") is False
        mock_sleep.assert_not_called()

    def test_wildcard_below_missing_container(self, connector):
        assert connector.exists("Nowhere/*") is False

    def test_wildcard_below_file(self, connector):
        """Files have no children."""
        assert connector.exists("Documents/readme.txt/*") is False

    def test_backend_failure_propagates(self, connector, backend):
        """Only absence means False; other failures are raised."""
        backend.query_site.side_effect = BackendUnavailableError("query_site", "down")

        with pytest.raises(BackendUnavailableError):
            connector.exists("Documents")


class TestEnumeration:
    """Test cases for children listings."""

    def test_site_children_sites_then_lists_then_groups(self, connector):
        """Sites come first, then lists placed on the site, then groups."""
        children = connector.get_children(connector.root)

        assert [child.name for child in children] == ["Projects", "Documents", "Lists"]
        assert [type(child) for child in children] == [Site, Library, ContainerGroup]

    def test_group_children(self, connector):
        group = connector.resolve("Lists")

        assert [child.name for child in group.get_children()] == ["Tasks", "Issues"]

    def test_container_groups(self, connector):
        groups = connector.get_container_groups(connector.root)

        assert [group.path for group in groups] == ["Lists"]
        assert connector.get_container_groups(connector.resolve("Projects")) == []

    def test_folder_children(self, connector):
        docs = connector.resolve("Documents")

        children = connector.get_children(docs)

        assert [child.name for child in children] == ["Specs", "readme.txt"]
        assert isinstance(children[0], Folder)
        assert children[1].size == 5

    def test_listing_reused_within_window(self, connector, backend):
        """Listings are fetched once per burst."""
        connector.get_children(connector.root)
        connector.get_children(connector.root)

        assert backend.query_sites.call_count == 1
        assert backend.query_lists.call_count == 1

    def test_listing_refetched_after_pause(self, connector, backend, clock):
        docs = connector.resolve("Documents")
        connector.get_items(docs)
        clock.advance(3)

        connector.get_items(docs)

        assert backend.query_items.call_count == 2

    def test_listed_children_are_cached(self, connector, backend):
        """Children built by a listing satisfy later lookups."""
        connector.get_children(connector.resolve("Documents"))

        connector.resolve("Documents/readme.txt")

        backend.query_item.assert_not_called()

    def test_has_children(self, connector):
        assert connector.has_children(connector.root) is True
        assert connector.has_children(connector.resolve("Lists/Issues")) is False
        assert connector.has_children(connector.resolve("Documents/readme.txt")) is False

    def test_file_has_no_children_listing(self, connector):
        readme = connector.resolve("Documents/readme.txt")

        with pytest.raises(UnsupportedOperationError):
            connector.get_children(readme)

    def test_get_lists_needs_site_or_group(self, connector):
        with pytest.raises(UnsupportedOperationError):
            connector.get_lists(connector.resolve("Documents"))

    def test_list_field_definitions(self, clock):
        """Field definitions of a list are parsed from its record."""
        backend = MemoryBackend({"site": {"lists": [{
            "name": "Contacts",
            "template": 105,
            "fields": ["Title", {"name": "Email", "title": "E-mail", "hidden": "yes"}],
        }]}})
        connector = CachingConnector(backend, clock=clock)

        contacts = connector.resolve("Contacts")

        assert [field.name for field in contacts.fields] == ["Title", "Email"]
        assert contacts.fields[1].title == "E-mail"
        assert contacts.fields[1].hidden is True
        assert contacts.properties["template"] == 105
