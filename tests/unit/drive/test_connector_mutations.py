"""Unit tests for mutations and cache reconciliation in drive.connector."""

import io

import pytest

from src.drive.errors import (
    InvalidArgumentError,
    InvalidHierarchyError,
    UnsupportedOperationError,
)
from src.drive.models import File, Folder, Item, Library, LibraryFolder, SiteList
from src.drive.parameters import ListCreationParameters, SiteCreationParameters
from src.remote_client.errors import (
    BackendUnavailableError,
    ObjectExistsError,
    ObjectNotFoundError,
)


def names(entities):
    return [entity.name for entity in entities]


class TestRemove:
    """Test cases for removing entities."""

    def test_remove_item_updates_parent_listing(self, connector, backend):
        """A removed file vanishes from the cached listing without a refetch."""
        docs = connector.resolve("Documents")
        connector.get_items(docs)
        readme = connector.resolve("Documents/readme.txt")

        connector.remove(readme)

        assert names(connector.get_items(docs)) == ["Specs"]
        assert backend.query_items.call_count == 1
        assert "Documents/readme.txt" not in connector.cache
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Documents/readme.txt")

    def test_remove_folder_evicts_descendants(self, connector):
        """Cached entities below a removed folder are evicted with it."""
        specs = connector.resolve("Documents/Specs")
        connector.resolve("Documents/Specs/design.txt")

        specs.remove(recurse=True)

        assert "Documents/Specs" not in connector.cache
        assert "Documents/Specs/design.txt" not in connector.cache
        assert names(connector.get_items(connector.resolve("Documents"))) == ["readme.txt"]

    def test_remove_sub_site(self, connector):
        root = connector.root
        connector.get_children(root)
        projects = connector.resolve("Projects")
        connector.resolve("Projects/Plans")

        connector.remove(projects)

        assert connector.get_sites(root) == []
        assert "Projects/Plans" not in connector.cache

    def test_root_site_cannot_be_removed(self, connector, backend):
        with pytest.raises(UnsupportedOperationError):
            connector.remove(connector.root)

        backend.remove_site.assert_not_called()

    def test_container_group_cannot_be_removed(self, connector):
        """Container groups are inferred and have no remove capability."""
        with pytest.raises(UnsupportedOperationError):
            connector.remove(connector.resolve("Lists"))

    def test_group_stays_while_lists_remain(self, connector):
        tasks = connector.resolve("Lists/Tasks")

        connector.remove(tasks)

        group = connector.resolve("Lists")
        assert names(connector.get_lists(group)) == ["Issues"]

    def test_group_vanishes_with_last_list(self, connector):
        """Removing the last list of a container group removes the group."""
        connector.remove(connector.resolve("Lists/Tasks"))
        connector.remove(connector.resolve("Lists/Issues"))

        assert names(connector.get_children(connector.root)) == ["Projects", "Documents"]
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Lists")

    def test_remove_list_from_sub_site(self, connector):
        projects = connector.resolve("Projects")

        connector.remove_list(connector.resolve("Projects/Plans"))

        assert connector.get_lists(projects) == []
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Projects/Plans")

    def test_failed_backend_call_keeps_cache(self, connector, backend):
        """The cache is reconciled only after the backend succeeded."""
        readme = connector.resolve("Documents/readme.txt")
        backend.remove_item.side_effect = BackendUnavailableError("remove_item", "down")

        with pytest.raises(BackendUnavailableError):
            connector.remove(readme)

        assert connector.resolve("Documents/readme.txt") is readme


class TestRename:
    """Test cases for renaming items."""

    def test_rename_item(self, connector):
        tasks = connector.resolve("Lists/Tasks")
        connector.get_items(tasks)
        plan = connector.resolve("Lists/Tasks/Plan")

        renamed = plan.rename("Plan B")

        assert renamed.path == "Lists/Tasks/Plan B"
        assert renamed.id == plan.id
        assert names(connector.get_items(tasks)) == ["Review", "Plan B"]
        with pytest.raises(ObjectNotFoundError):
            connector.resolve("Lists/Tasks/Plan")

    def test_rename_folder_evicts_old_descendants(self, connector):
        """Descendants of a renamed folder are looked up again under the new path."""
        specs = connector.resolve("Documents/Specs")
        connector.resolve("Documents/Specs/design.txt")

        connector.rename(specs, "Designs")

        assert "Documents/Specs/design.txt" not in connector.cache
        assert connector.resolve("Documents/Designs/design.txt").size == 10

    def test_rename_to_taken_name(self, connector):
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(ObjectExistsError):
            connector.rename(plan, "review")

    @pytest.mark.parametrize("new_name", ["", "  ", "a/b", "a\\b", None])
    def test_invalid_new_name(self, connector, backend, new_name):
        """Blank names and names with separators are rejected before the backend."""
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(InvalidArgumentError):
            connector.rename(plan, new_name)

        backend.rename_item.assert_not_called()

    def test_list_cannot_be_renamed(self, connector):
        with pytest.raises(UnsupportedOperationError):
            connector.rename(connector.resolve("Lists/Tasks"), "Todo")


class TestMove:
    """Test cases for moving items."""

    def test_move_to_other_list(self, connector, backend):
        """Items moved to another list get an identifier unique there."""
        tasks = connector.resolve("Lists/Tasks")
        plans = connector.resolve("Projects/Plans")
        connector.get_items(tasks)
        connector.get_items(plans)
        plan = connector.resolve("Lists/Tasks/Plan")

        moved = connector.move(plan, plans)

        assert moved.path == "Projects/Plans/Plan"
        assert moved.id == 2
        assert moved.site_list is plans
        assert names(connector.get_items(tasks)) == ["Review"]
        assert names(connector.get_items(plans)) == ["Kickoff", "Plan"]
        assert backend.query_items.call_count == 2

    def test_move_file_into_folder(self, connector, backend):
        readme = connector.resolve("Documents/readme.txt")
        specs = connector.resolve("Documents/Specs")
        connector.get_items(specs)

        moved = readme.move(specs)

        assert isinstance(moved, File)
        assert moved.path == "Documents/Specs/readme.txt"
        assert moved.id == 3
        assert names(connector.get_items(specs)) == ["design.txt", "readme.txt"]
        assert backend.query_items.call_count == 1

    def test_file_needs_content_container(self, connector, backend):
        """Files can be placed only in libraries and their folders."""
        readme = connector.resolve("Documents/readme.txt")

        with pytest.raises(InvalidHierarchyError):
            connector.move(readme, connector.resolve("Lists/Tasks"))

        backend.move_item.assert_not_called()

    def test_folder_into_itself(self, connector):
        specs = connector.resolve("Documents/Specs")

        with pytest.raises(InvalidHierarchyError):
            connector.move(specs, specs)

    def test_item_into_site(self, connector):
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(InvalidHierarchyError):
            connector.move(plan, connector.root)

    def test_item_into_file(self, connector):
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(UnsupportedOperationError):
            connector.move(plan, connector.resolve("Documents/readme.txt"))

    def test_missing_target(self, connector):
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(InvalidArgumentError):
            connector.move(plan, None)


class TestCopy:
    """Test cases for copying items."""

    def test_copy_file(self, connector):
        """A copy gets a new identifier and keeps the content."""
        readme = connector.resolve("Documents/readme.txt")
        specs = connector.resolve("Documents/Specs")

        copied = connector.copy(readme, specs)

        assert copied.path == "Documents/Specs/readme.txt"
        assert copied.id == 4
        assert copied.unique_id != readme.unique_id
        assert connector.open_file(copied).read() == b"hello"
        assert connector.exists("Documents/readme.txt") is True

    def test_copy_with_new_name(self, connector, backend):
        docs = connector.resolve("Documents")
        connector.get_items(docs)
        readme = connector.resolve("Documents/readme.txt")

        copied = readme.copy(docs, new_name="readme-copy.txt")

        assert copied.path == "Documents/readme-copy.txt"
        assert names(connector.get_items(docs)) == ["Specs", "readme.txt", "readme-copy.txt"]
        assert backend.query_items.call_count == 1

    def test_copy_item_into_list(self, connector, backend):
        tasks = connector.resolve("Lists/Tasks")
        connector.get_items(tasks)
        plan = connector.resolve("Lists/Tasks/Plan")

        copied = connector.copy_item(plan, tasks, new_name="Plan B")

        assert copied.path == "Lists/Tasks/Plan B"
        assert names(connector.get_items(tasks)) == ["Plan", "Review", "Plan B"]
        assert backend.query_items.call_count == 1

    def test_copy_folder_without_recurse(self, connector):
        """Folders are copied empty unless recurse is set."""
        specs = connector.resolve("Documents/Specs")
        docs = connector.resolve("Documents")

        copied = connector.copy(specs, docs, new_name="Empty")

        assert isinstance(copied, LibraryFolder)
        assert copied.child_count == 0

    def test_copy_folder_with_recurse(self, connector):
        specs = connector.resolve("Documents/Specs")
        docs = connector.resolve("Documents")

        copied = connector.copy(specs, docs, recurse=True, new_name="Specs 2")

        assert copied.child_count == 1
        design = connector.resolve("Documents/Specs 2/design.txt")
        assert connector.open_file(design).read() == b"final text"

    def test_copy_to_taken_name(self, connector):
        readme = connector.resolve("Documents/readme.txt")

        with pytest.raises(ObjectExistsError):
            connector.copy(readme, connector.resolve("Documents"))

    def test_copy_folder_into_own_subtree(self, connector):
        specs = connector.resolve("Documents/Specs")

        with pytest.raises(InvalidHierarchyError):
            connector.copy(specs, specs, recurse=True)


class TestAddSitesAndLists:
    """Test cases for creating sites and lists."""

    def test_add_site(self, connector):
        root = connector.root
        connector.get_sites(root)

        site = root.add_site(SiteCreationParameters(name="Archive", template="STS#0"))

        assert site.path == "Archive"
        assert site.title == "Archive"
        assert site.id is not None
        assert names(connector.get_sites(root)) == ["Projects", "Archive"]
        assert connector.resolve("archive") is site

    def test_add_site_needs_template(self, connector, backend):
        with pytest.raises(InvalidArgumentError):
            connector.add_site(connector.root, SiteCreationParameters(name="Archive"))

        backend.add_site.assert_not_called()

    def test_add_site_needs_parameters(self, connector):
        with pytest.raises(InvalidArgumentError):
            connector.add_site(connector.root, None)

    @pytest.mark.parametrize("name", ["Documents", "lists", "Projects"])
    def test_site_name_shared_with_lists_and_groups(self, connector, name):
        """Sub-sites, lists and groups of a site share one namespace."""
        with pytest.raises(ObjectExistsError):
            connector.add_site(
                connector.root, SiteCreationParameters(name=name, template="STS#0")
            )

    def test_site_not_allowed_in_list(self, connector):
        with pytest.raises(InvalidHierarchyError):
            connector.add_site(
                connector.resolve("Documents"),
                SiteCreationParameters(name="Archive", template="STS#0"),
            )

    def test_add_list(self, connector):
        root = connector.root
        connector.get_lists(root)

        risks = root.add_list(ListCreationParameters(name="Risks", template=100))

        assert type(risks) is SiteList
        assert risks.site is root
        assert names(connector.get_lists(root)) == ["Documents", "Risks"]

    def test_add_library(self, connector):
        archive = connector.add_list(
            connector.root,
            ListCreationParameters(name="Archive", template=101, library=True),
        )

        assert isinstance(archive, Library)

    def test_add_list_to_group(self, connector):
        """A list added to a group is placed below the group's name."""
        group = connector.resolve("Lists")

        risks = group.add_list(ListCreationParameters(name="Risks", template=100))

        assert risks.path == "Lists/Risks"
        assert risks.site_relative_path == "Lists/Risks"
        assert names(connector.get_lists(group)) == ["Tasks", "Issues", "Risks"]

    def test_add_list_with_new_group(self, connector):
        """Naming a list "Group/Name" brings a new container group to life."""
        connector.add_list(
            connector.root, ListCreationParameters(name="Archive/Old", template=100)
        )

        group = connector.resolve("Archive")
        assert names(connector.get_lists(group)) == ["Old"]

    def test_add_list_to_item(self, connector):
        with pytest.raises(UnsupportedOperationError):
            connector.add_list(
                connector.resolve("Lists/Tasks/Plan"),
                ListCreationParameters(name="Risks", template=100),
            )

    def test_add_list_to_folder(self, connector):
        """Folders hold items only, never lists."""
        with pytest.raises(InvalidHierarchyError):
            connector.add_list(
                connector.resolve("Documents/Specs"),
                ListCreationParameters(name="Risks", template=100),
            )

    def test_add_list_with_taken_name(self, connector):
        with pytest.raises(ObjectExistsError):
            connector.add_list(
                connector.root, ListCreationParameters(name="documents", template=100)
            )


class TestAddItems:
    """Test cases for creating items, folders and files."""

    def test_add_item(self, connector, backend):
        """A new item joins the cached listing without a fresh query."""
        tasks = connector.resolve("Lists/Tasks")
        connector.get_items(tasks)

        item = tasks.add_item("Follow-up")

        assert type(item) is Item
        assert item.id == 3
        assert item.path == "Lists/Tasks/Follow-up"
        assert names(connector.get_items(tasks)) == ["Plan", "Review", "Follow-up"]
        assert backend.query_items.call_count == 1

    def test_add_folder_in_list(self, connector):
        folder = connector.add_folder(connector.resolve("Lists/Tasks"), "Done")

        assert type(folder) is Folder

    def test_add_folder_in_library(self, connector):
        folder = connector.add_folder(connector.resolve("Documents"), "Drafts")

        assert isinstance(folder, LibraryFolder)
        assert folder.path == "Documents/Drafts"

    def test_add_nested_item(self, connector):
        """Items can be added to folders created earlier."""
        folder = connector.add_folder(connector.resolve("Lists/Tasks"), "Done")

        item = folder.add_item("Setup")

        assert item.path == "Lists/Tasks/Done/Setup"
        assert names(connector.get_items(folder)) == ["Setup"]

    @pytest.mark.parametrize("content,size", [
        (b"bytes", 5),
        ("some notes", 10),
        (io.BytesIO(b"abc"), 3),
    ])
    def test_add_file_accepts_bytes_text_and_streams(self, connector, content, size):
        docs = connector.resolve("Documents")

        added = docs.add_file("notes.txt", content)

        assert added.size == size
        assert connector.resolve("Documents/notes.txt") is added

    def test_add_file_to_plain_list(self, connector, backend):
        """Lists which are not libraries cannot hold files."""
        with pytest.raises(UnsupportedOperationError):
            connector.add_file(connector.resolve("Lists/Tasks"), "a.txt", b"x")

        backend.add_file.assert_not_called()

    @pytest.mark.parametrize("content", [None, 42])
    def test_add_file_rejects_invalid_content(self, connector, content):
        with pytest.raises(InvalidArgumentError):
            connector.add_file(connector.resolve("Documents"), "a.txt", content)

    def test_item_not_allowed_in_site(self, connector):
        with pytest.raises(InvalidHierarchyError):
            connector.add_item(connector.root, "Loose")

    def test_taken_name(self, connector):
        with pytest.raises(ObjectExistsError):
            connector.add_item(connector.resolve("Lists/Tasks"), "plan")

    def test_blank_name(self, connector):
        with pytest.raises(InvalidArgumentError):
            connector.add_folder(connector.resolve("Documents"), " ")


class TestContent:
    """Test cases for reading and writing file content."""

    def test_open_latest_version(self, connector):
        design = connector.resolve("Documents/Specs/design.txt")

        assert design.open().read() == b"final text"

    def test_open_specific_version(self, connector):
        design = connector.resolve("Documents/Specs/design.txt")

        assert connector.open_file(design, "1").read() == b"draft"

    def test_open_missing_version(self, connector):
        design = connector.resolve("Documents/Specs/design.txt")

        with pytest.raises(ObjectNotFoundError):
            connector.open_file(design, "9")

    def test_save_adds_version(self, connector):
        readme = connector.resolve("Documents/readme.txt")

        saved = readme.save(b"hello again")

        assert saved.size == 11
        assert saved.properties["version_count"] == 2
        assert connector.resolve("Documents/readme.txt") is saved
        assert connector.open_file(saved).read() == b"hello again"
        assert connector.open_file(saved, "1").read() == b"hello"

    def test_items_have_no_content(self, connector):
        plan = connector.resolve("Lists/Tasks/Plan")

        with pytest.raises(UnsupportedOperationError):
            connector.open_file(plan)
        with pytest.raises(UnsupportedOperationError):
            connector.save_file(plan, b"x")


class TestReconciliationAfterPause:
    """Test cases for mutations arriving after the cache went cold."""

    def test_listing_refetched_after_cold_mutation(self, connector, backend, clock):
        """A mutation after a pause drops the stale listing instead of patching it."""
        tasks = connector.resolve("Lists/Tasks")
        connector.get_items(tasks)
        clock.advance(3)

        tasks.add_item("Late")

        assert names(connector.get_items(tasks)) == ["Plan", "Review", "Late"]
        assert backend.query_items.call_count == 2

    def test_root_listing_refetched_after_cold_mutation(self, connector, backend, clock):
        """The drive root drops its listings when the cache goes cold."""
        root = connector.root
        connector.get_children(root)
        clock.advance(3)

        connector.add_list(root, ListCreationParameters(name="Risks", template=100))

        assert names(connector.get_lists(root)) == ["Documents", "Risks"]
        assert backend.query_lists.call_count == 2
