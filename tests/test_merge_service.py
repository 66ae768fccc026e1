"""
Tests for the remote/local reconciliation.
"""

from quotation_manager.services.merge_service import merge_by_id_local_wins


def test_local_copy_wins_on_same_id():
    remote = [{'id': 'a', 'name': 'remote'}, {'id': 'b', 'name': 'only remote'}]
    local = [{'id': 'a', 'name': 'local'}]

    merged = merge_by_id_local_wins(remote, local)

    assert merged == [{'id': 'a', 'name': 'local'}, {'id': 'b', 'name': 'only remote'}]


def test_local_wins_even_when_remote_is_newer():
    remote = [{'id': 'a', 'updated_at': '2026-05-01T00:00:00Z'}]
    local = [{'id': 'a', 'updated_at': '2020-01-01T00:00:00Z'}]
    assert merge_by_id_local_wins(remote, local) == local


def test_local_only_entities_are_appended_in_order():
    remote = [{'id': 'a'}]
    local = [{'id': 'z'}, {'id': 'a', 'v': 2}, {'id': 'm'}]
    assert [e['id'] for e in merge_by_id_local_wins(remote, local)] == ['a', 'z', 'm']


def test_one_entry_per_id():
    remote = [{'id': 'a'}, {'id': 'b'}]
    local = [{'id': 'b'}, {'id': 'c'}]
    merged = merge_by_id_local_wins(remote, local)
    ids = [e['id'] for e in merged]
    assert sorted(ids) == ['a', 'b', 'c']
    assert len(ids) == len(set(ids))


def test_missing_sides_count_as_empty():
    assert merge_by_id_local_wins(None, None) == []
    assert merge_by_id_local_wins(None, [{'id': 'a'}]) == [{'id': 'a'}]
    assert merge_by_id_local_wins([{'id': 'a'}], None) == [{'id': 'a'}]
