"""Unit tests for crud/lists.py"""

from datetime import datetime

from awesync.crud.lists import create_list, get_all_lists, get_list, touch_last_sync


def test_create_list_defaults(session):
    """Name falls back to the repo name; branch and path default to main / README.md."""
    lst = create_list(session, "acme", "awesome-things")
    assert lst.id is not None
    assert lst.name == "awesome-things"
    assert lst.branch == "main"
    assert lst.file_path == "README.md"
    assert lst.last_sync_at is None


def test_get_list(session, awesome_list):
    assert get_list(session, awesome_list.id).name == "Awesome Tools"
    assert get_list(session, 999) is None


def test_get_all_lists_newest_first(session, awesome_list):
    newer = create_list(session, "acme", "awesome-more")
    assert [lst.id for lst in get_all_lists(session)] == [newer.id, awesome_list.id]


def test_touch_last_sync(session, awesome_list):
    when = datetime(2024, 1, 2, 3, 4, 5)
    touch_last_sync(session, awesome_list, when)
    assert get_list(session, awesome_list.id).last_sync_at == when
