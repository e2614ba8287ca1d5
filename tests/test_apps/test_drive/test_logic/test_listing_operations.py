"""Tests for item listing business logic."""

from datetime import UTC, datetime, timedelta

import pytest

from server.apps.drive.logic.listing_operations import list_items
from server.apps.drive.logic.patches import (
    FolderView,
    RecentView,
    SearchView,
    StarredView,
    TrashView,
)
from server.apps.drive.logic.tree_operations import (
    create_file_record,
    create_folder,
)
from server.apps.drive.models import Item


def _file_record(user, parent_id, name, index=0):
    return create_file_record(
        user,
        parent_id,
        name,
        storage_ref=f'{index:032x}',
        mime_type='text/plain',
        size_bytes=10,
        extension='txt',
    )


def _names(items):
    return [item.name for item in items]


@pytest.mark.django_db
class TestFolderView:
    """Tests for folder listings."""

    def test_folder_listing(self, user):
        """Test children of Documents: folders first, then files."""
        documents = create_folder(user, None, 'Documents')
        create_folder(user, documents.id, 'Reports')
        _file_record(user, documents.id, 'notes.txt', index=1)
        create_folder(user, documents.id, 'Archive')

        items = list_items(user, FolderView(parent_id=documents.id))

        assert _names(items) == ['Archive', 'Reports', 'notes.txt']

    def test_root_listing(self, user):
        """Test the root view shows only parentless items."""
        documents = create_folder(user, None, 'Documents')
        create_folder(user, documents.id, 'Reports')
        _file_record(user, None, 'readme.txt', index=1)

        items = list_items(user, FolderView())

        assert _names(items) == ['Documents', 'readme.txt']

    def test_trashed_children_hidden(self, user):
        """Test trashed items do not show up in folders."""
        documents = create_folder(user, None, 'Documents')
        reports = create_folder(user, documents.id, 'Reports')
        Item.objects.filter(id=reports.id).update(is_trashed=True)

        assert list_items(user, FolderView(parent_id=documents.id)) == []

    def test_other_users_items_hidden(self, user, other_user):
        """Test listings never include other users' items."""
        create_folder(other_user, None, 'Theirs')

        assert list_items(user, FolderView()) == []

    def test_foreign_folder_is_empty(self, user, other_user):
        """Test listing a foreign folder gives nothing."""
        foreign = create_folder(other_user, None, 'Theirs')
        create_folder(other_user, foreign.id, 'Inside')

        assert list_items(user, FolderView(parent_id=foreign.id)) == []


@pytest.mark.django_db
class TestRecentView:
    """Tests for the recent files view."""

    def test_recent_orders_by_access(self, user):
        """Test most recently accessed files come first."""
        first = _file_record(user, None, 'first.txt', index=1)
        second = _file_record(user, None, 'second.txt', index=2)
        create_folder(user, None, 'Folders are never recent')
        base = datetime(2024, 1, 1, tzinfo=UTC)
        Item.objects.filter(id=first.id).update(
            last_accessed_at=base + timedelta(hours=1),
        )
        Item.objects.filter(id=second.id).update(last_accessed_at=base)

        items = list_items(user, RecentView())

        assert _names(items) == ['first.txt', 'second.txt']

    def test_recent_is_limited(self, user):
        """Test at most twenty files are returned."""
        for index in range(25):
            _file_record(user, None, f'file-{index}.txt', index=index)

        items = list_items(user, RecentView())

        assert len(items) == 20
        assert items[0].name == 'file-24.txt'

    def test_recent_skips_trashed(self, user):
        """Test trashed files are not recent."""
        trashed = _file_record(user, None, 'old.txt', index=1)
        Item.objects.filter(id=trashed.id).update(is_trashed=True)

        assert list_items(user, RecentView()) == []


@pytest.mark.django_db
class TestStarredAndTrashViews:
    """Tests for the starred and trash views."""

    def test_starred(self, user):
        """Test starred view lists starred, non-trashed items newest first."""
        older = create_folder(user, None, 'Older')
        newer = _file_record(user, None, 'newer.txt', index=1)
        hidden = create_folder(user, None, 'Starred but trashed')
        create_folder(user, None, 'Not starred')
        Item.objects.filter(id__in=[older.id, newer.id]).update(is_starred=True)
        Item.objects.filter(id=hidden.id).update(
            is_starred=True,
            is_trashed=True,
        )

        items = list_items(user, StarredView())

        assert _names(items) == ['newer.txt', 'Older']

    def test_trash(self, user):
        """Test trash view lists trashed items at any depth."""
        documents = create_folder(user, None, 'Documents')
        reports = create_folder(user, documents.id, 'Reports')
        create_folder(user, None, 'Kept')
        Item.objects.filter(id__in=[documents.id, reports.id]).update(
            is_trashed=True,
        )

        items = list_items(user, TrashView())

        assert _names(items) == ['Reports', 'Documents']


@pytest.mark.django_db
class TestSearchView:
    """Tests for searching by name."""

    def test_search_is_case_insensitive(self, user):
        """Test substring match ignoring case, folders first."""
        documents = create_folder(user, None, 'Documents')
        _file_record(user, documents.id, 'quarterly-REPORT.pdf', index=1)
        create_folder(user, documents.id, 'Reports')
        create_folder(user, None, 'Photos')

        items = list_items(user, SearchView(query='report'))

        assert _names(items) == ['Reports', 'quarterly-REPORT.pdf']

    def test_search_skips_trashed(self, user):
        """Test trashed items are not found."""
        reports = create_folder(user, None, 'Reports')
        Item.objects.filter(id=reports.id).update(is_trashed=True)

        assert list_items(user, SearchView(query='rep')) == []

    def test_search_only_own_items(self, user, other_user):
        """Test other users' items are not found."""
        create_folder(other_user, None, 'Reports')

        assert list_items(user, SearchView(query='rep')) == []

    @pytest.mark.parametrize('query', ['', '   '])
    def test_blank_query(self, user, query):
        """Test blank queries find nothing."""
        create_folder(user, None, 'Documents')

        assert list_items(user, SearchView(query=query)) == []


@pytest.mark.django_db
def test_unknown_view(user):
    """Test unsupported view objects are rejected."""
    with pytest.raises(TypeError):
        list_items(user, object())  # type: ignore[arg-type]
