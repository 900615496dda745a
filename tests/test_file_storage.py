"""Tests for FileStorage, the JSON document behind the credential store."""

import json
import os

import pytest
from marshmallow import ValidationError

from models import FileStorage, RefreshToken, ResetToken, User


@pytest.fixture
def storage(tmp_path):
    file_storage = FileStorage(tmp_path / "nested" / "db.json")
    file_storage.init()
    return file_storage


def _user(**overrides):
    fields = {
        "id": "u-1",
        "username": "alice",
        "email": "alice@example.com",
        "password_hash": "salt$abcd",
        "created_at": 1700000000,
    }
    fields.update(overrides)
    return User(**fields)


class TestFileStorage:
    """Tests for loading, saving and querying the document."""

    def test_init_creates_parent_directory_and_document(self, storage):
        """init() creates missing directories and an empty document."""
        with open(storage.path, encoding="utf-8") as fh:
            assert json.load(fh) == {"users": [], "refreshTokens": [], "resetTokens": []}

    def test_save_uses_camel_case_layout(self, storage):
        """Records are written with the persisted key names."""
        storage.new(_user())
        storage.new(RefreshToken(token="t.t.t", user_id="u-1", expires_at=10))
        storage.new(ResetToken(user_id="u-1", token_hash="ff", expires_at=20))
        storage.save()

        with open(storage.path, encoding="utf-8") as fh:
            document = json.load(fh)
        assert document["users"] == [
            {
                "id": "u-1",
                "username": "alice",
                "email": "alice@example.com",
                "password": "salt$abcd",
                "createdAt": 1700000000,
            }
        ]
        assert document["refreshTokens"] == [{"token": "t.t.t", "userId": "u-1", "expiresAt": 10}]
        assert document["resetTokens"] == [{"userId": "u-1", "tokenHash": "ff", "expiresAt": 20}]

    def test_save_leaves_no_temp_files(self, storage):
        """The atomic write cleans up after itself."""
        storage.new(_user())
        storage.save()

        assert os.listdir(os.path.dirname(storage.path)) == ["db.json"]

    def test_reload_sees_external_edits(self, storage):
        """Changes written by someone else show up after reload()."""
        with open(storage.path, "w", encoding="utf-8") as fh:
            json.dump(
                {
                    "users": [
                        {"id": "x", "username": "x", "email": "x@x", "password": "s$00", "createdAt": 1}
                    ],
                    "refreshTokens": [],
                    "resetTokens": [],
                },
                fh,
            )

        storage.reload()

        assert storage.get(User, "x").email == "x@x"

    def test_reload_tolerates_missing_collections(self, storage):
        """A document without a collection loads it as empty."""
        with open(storage.path, "w", encoding="utf-8") as fh:
            json.dump({"users": []}, fh)

        storage.reload()
        storage.save()

        with open(storage.path, encoding="utf-8") as fh:
            assert json.load(fh) == {"users": [], "refreshTokens": [], "resetTokens": []}

    def test_corrupt_document_propagates(self, storage):
        """Invalid JSON is not swallowed."""
        with open(storage.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")

        with pytest.raises(json.JSONDecodeError):
            storage.reload()

    def test_invalid_record_propagates(self, storage):
        """A record missing required fields fails schema validation."""
        with open(storage.path, "w", encoding="utf-8") as fh:
            json.dump({"users": [{"id": "x"}]}, fh)

        with pytest.raises(ValidationError):
            storage.reload()

    def test_missing_file_propagates(self, tmp_path):
        """reload() without init() on a missing path raises."""
        with pytest.raises(FileNotFoundError):
            FileStorage(tmp_path / "absent.json").reload()

    def test_queries(self, storage):
        """get and find over the in-memory view."""
        alice = _user()
        bob = _user(id="u-2", username="bob", email="bob@example.com")
        storage.new(alice)
        storage.new(bob)

        assert storage.get(User, "u-2") is bob
        assert storage.get(User, "missing") is None
        assert storage.get(str, "u-1") is None
        assert storage.find(User, email="alice@example.com") is alice
        assert storage.find(User, username="carol") is None
        assert storage.find(User, username="bob", email="bob@example.com") is bob
        assert storage.get(RefreshToken, "u-1") is None

    def test_delete_and_remove(self, storage):
        """delete() drops one object; remove() drops by predicate and counts."""
        first = RefreshToken(token="a", user_id="u-1", expires_at=1)
        second = RefreshToken(token="b", user_id="u-1", expires_at=2)
        third = RefreshToken(token="c", user_id="u-2", expires_at=3)
        for record in (first, second, third):
            storage.new(record)

        storage.delete(first)
        storage.delete(None)
        removed = storage.remove(RefreshToken, lambda r: r.user_id == "u-1")

        assert removed == 1
        assert [storage.get(RefreshToken, key) for key in ("a", "b", "c")] == [None, None, third]

    def test_round_trip_rebuilds_models(self, storage):
        """Saved records reload as equal model instances."""
        original = _user()
        storage.new(original)
        storage.save()

        storage.reload()

        reloaded = storage.get(User, "u-1")
        assert isinstance(reloaded, User)
        assert reloaded == original
        assert reloaded is not original


class TestModels:
    """Tests for the record classes."""

    def test_str_hides_secrets(self):
        """Neither the password hash nor tokens are printed."""
        assert "salt$abcd" not in str(_user())
        assert "t.t.t" not in str(RefreshToken(token="t.t.t", user_id="u", expires_at=1))

    def test_expiry(self):
        """A record expires strictly after expires_at."""
        record = ResetToken(user_id="u", token_hash="h", expires_at=100)

        assert record.is_expired(100) is False
        assert record.is_expired(101) is True

    def test_keys(self):
        assert _user().key == "u-1"
        assert RefreshToken(token="t", user_id="u", expires_at=1).key == "t"
        assert ResetToken(user_id="u", token_hash="h", expires_at=1).key == "h"
