"""
Owner allow-list tests.

Run: pytest backend/test_owners.py -v
"""

import json

import pytest

from backend.owners import OwnerDirectory, load_owner_directory


def test_verify_requires_exact_pair():
    directory = OwnerDirectory.from_entries([{"username": "alice", "password": "alice-pass"}])

    assert directory.verify("alice", "alice-pass")
    assert not directory.verify("alice", "wrong")
    assert not directory.verify("Alice", "alice-pass")
    assert not directory.verify("bob", "alice-pass")
    assert not directory.verify("alice", None)
    assert not directory.verify("", "")


def test_membership_and_size():
    directory = OwnerDirectory.from_entries([
        {"username": "alice", "password": "a"},
        {"username": "bob", "password": "b"},
    ])
    assert len(directory) == 2
    assert "bob" in directory
    assert "eve" not in directory


@pytest.mark.parametrize("entries", [
    {"username": "alice", "password": "a"},
    [{"username": "alice"}],
    [{"username": "", "password": "a"}],
    ["alice:a"],
    [{"username": "alice", "password": "a"}, {"username": "alice", "password": "b"}],
    [{"username": "alice", "password": "x" * 73}],
])
def test_malformed_entries_rejected(entries):
    with pytest.raises(ValueError):
        OwnerDirectory.from_entries(entries)


def test_load_from_file(tmp_path):
    path = tmp_path / "owners.json"
    path.write_text(json.dumps([{"username": "admin", "password": "admin123"}]))

    directory = load_owner_directory(str(path))

    assert directory.verify("admin", "admin123")


def test_missing_file_disables_owner_login(tmp_path):
    directory = load_owner_directory(str(tmp_path / "missing.json"))
    assert len(directory) == 0
    assert not directory.verify("admin", "admin123")


def test_invalid_json_fails_loudly(tmp_path):
    path = tmp_path / "owners.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        load_owner_directory(str(path))


def test_bundled_example_allow_list_parses():
    directory = load_owner_directory("owners.example.json")
    assert "admin" in directory
