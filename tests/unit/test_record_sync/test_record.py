"""Tests for Record: field access, identity, and the save/refresh/delete lifecycle."""

import pytest

from record_store import RecordPointer, ValidationError
from record_sync import Record


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------

class TestNewRecord:
    def test_unsaved_record_has_no_id_and_is_dirty(self, dispatcher):
        r = Record("Note", dispatcher)
        assert r.object_id is None
        assert r.created_at is None
        assert r.is_dirty is True

    def test_invalid_class_name(self, dispatcher):
        with pytest.raises(ValidationError):
            Record("9lives", dispatcher)


class TestFieldAccess:
    def test_item_access(self, dispatcher):
        r = Record("Note", dispatcher)
        r["title"] = "x"
        assert r["title"] == "x"
        assert "title" in r
        assert list(r) == ["title"]

    def test_missing_item_raises_key_error(self, dispatcher):
        with pytest.raises(KeyError):
            Record("Note", dispatcher)["nope"]

    def test_del_item(self, dispatcher):
        r = Record("Note", dispatcher)
        r["title"] = "x"
        del r["title"]
        assert r.get("title") is None
        assert r.pending_removals == frozenset({"title"})

    def test_del_missing_item_raises(self, dispatcher):
        with pytest.raises(KeyError):
            del Record("Note", dispatcher)["nope"]

    @pytest.mark.parametrize("key", ["objectId", "createdAt", "updatedAt", "ACL"])
    def test_reserved_keys_rejected(self, dispatcher, key):
        with pytest.raises(ValidationError):
            Record("Note", dispatcher).set(key, 1)

    def test_record_value_tracked_as_reference(self, dispatcher):
        owner = Record("User", dispatcher)
        note = Record("Note", dispatcher)
        note["owner"] = owner
        assert note.references == {"owner": owner}
        assert note.referenced_records() == [owner]


# ---------------------------------------------------------------------------
# Lifecycle against the in-memory backend
# ---------------------------------------------------------------------------

class TestSave:
    def test_note_scenario(self, dispatcher, remote):
        note = Record("Note", dispatcher)
        note.set("title", "x")
        assert note.save() is True
        assert note.object_id
        assert note.is_dirty is False
        assert remote.stored("Note", note.object_id) == {"title": "x"}

        note.remove("title")
        assert note.save() is True
        assert note.get("title") is None
        assert note.pending_removals == frozenset()
        assert remote.stored("Note", note.object_id) == {}

    def test_id_and_created_at_stable_across_saves(self, dispatcher):
        note = Record("Note", dispatcher)
        note["n"] = 1
        note.save()
        object_id, created_at = note.object_id, note.created_at
        note["n"] = 2
        note.save()
        assert note.object_id == object_id
        assert note.created_at == created_at
        assert note.updated_at >= created_at

    def test_address_after_save(self, dispatcher):
        note = Record("Note", dispatcher)
        note.save()
        assert note.address() == RecordPointer("Note", note.object_id)

    def test_saved_reference_sent_as_pointer(self, dispatcher, remote):
        owner = Record("User", dispatcher)
        owner.save()
        note = Record("Note", dispatcher)
        note["owner"] = owner
        note.save()
        assert remote.stored("Note", note.object_id)["owner"] == owner.address().to_dict()

    def test_acl_is_sent_and_marks_dirty(self, dispatcher, remote):
        note = Record("Note", dispatcher)
        note.save()
        note.acl = {"*": {"read": True}}
        assert note.is_dirty is True
        note.save()
        assert note.is_dirty is False
        assert remote.fetch("Note", note.object_id).acl == {"*": {"read": True}}


class TestRefresh:
    def test_refresh_discards_local_edits(self, dispatcher, remote):
        note = Record("Note", dispatcher)
        note["title"] = "server"
        note["keep"] = 1
        note.save()
        note["title"] = "local"
        note.remove("keep")
        note["extra"] = True

        assert note.refresh() is True
        assert note.fields == {"title": "server", "keep": 1}
        assert note.pending_removals == frozenset()
        assert note.is_dirty is False

    def test_refresh_reads_server_changes(self, dispatcher, remote):
        note = Record("Note", dispatcher)
        note.save()
        remote.create_or_update("Note", note.object_id, {"title": "edited elsewhere"}, [], None)
        note.refresh()
        assert note["title"] == "edited elsewhere"

    def test_refresh_keeps_pointers_unresolved(self, dispatcher, remote):
        user_id = remote.put("User", {"name": "ann"})
        note_id = remote.put("Note", {"owner": RecordPointer("User", user_id).to_dict()})
        note = Record.from_result("Note", {"objectId": note_id}, dispatcher)
        note.refresh()
        assert note["owner"] == RecordPointer("User", user_id)
        assert remote.count("fetch") == 1


class TestDelete:
    def test_delete_is_terminal(self, dispatcher, remote):
        note = Record("Note", dispatcher)
        note.save()
        assert note.delete() is True
        assert note.is_deleted is True
        assert remote.stored("Note", note.object_id) is None
        assert note.save() is False
        assert note.refresh() is False


class TestFromResult:
    def test_reconstructed_record_is_clean(self, dispatcher):
        note = Record.from_result(
            "Note",
            {
                "objectId": "abc",
                "createdAt": "2011-08-21T18:02:52.249Z",
                "updatedAt": "2011-08-21T18:02:52.249Z",
                "title": "x",
            },
            dispatcher,
        )
        assert note.object_id == "abc"
        assert note.created_at is not None
        assert note["title"] == "x"
        assert note.is_dirty is False

    def test_requires_object_id(self, dispatcher):
        with pytest.raises(ValidationError):
            Record.from_result("Note", {"title": "x"}, dispatcher)


class TestResolve:
    def test_resolve_pointer(self, dispatcher, remote):
        user_id = remote.put("User", {"name": "ann"})
        user = Record.resolve(RecordPointer("User", user_id), dispatcher)
        assert user.object_id == user_id
        assert user["name"] == "ann"
        assert user.is_dirty is False
