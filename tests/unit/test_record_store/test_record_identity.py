"""Tests for RecordIdentity: class names, id assignment, pointers."""

from datetime import datetime, timezone

import pytest

from record_store import InvalidStateError, NotSavedError, RecordIdentity, RecordPointer, ValidationError

T1 = datetime(2011, 8, 21, 18, 2, 52, tzinfo=timezone.utc)
T2 = datetime(2011, 8, 22, 9, 0, 0, tzinfo=timezone.utc)


class TestClassName:
    @pytest.mark.parametrize("name", ["Note", "GameScore", "a1"])
    def test_valid(self, name):
        assert RecordIdentity(name).class_name == name

    @pytest.mark.parametrize("name", ["", "1Note", "Game Score", "_User", "Note!"])
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            RecordIdentity(name)


class TestApplySaveResult:
    def test_new_identity_has_nothing(self):
        ident = RecordIdentity("Note")
        assert ident.object_id is None
        assert ident.created_at is None
        assert ident.is_saved is False

    def test_first_save_assigns_id_and_timestamps(self):
        ident = RecordIdentity("Note")
        ident.apply_save_result("abc", T1, T1)
        assert ident.object_id == "abc"
        assert ident.created_at == T1
        assert ident.updated_at == T1

    def test_later_save_only_moves_updated_at(self):
        ident = RecordIdentity("Note")
        ident.apply_save_result("abc", T1, T1)
        ident.apply_save_result("abc", T2, T2)
        assert ident.created_at == T1
        assert ident.updated_at == T2

    def test_contradicting_id_rejected(self):
        ident = RecordIdentity("Note")
        ident.apply_save_result("abc", T1, T1)
        with pytest.raises(InvalidStateError):
            ident.apply_save_result("xyz", T2, T2)
        assert ident.object_id == "abc"

    def test_empty_id_rejected(self):
        with pytest.raises(InvalidStateError):
            RecordIdentity("Note").apply_save_result("", T1, T1)

    def test_created_at_falls_back_when_missing(self):
        ident = RecordIdentity("Note")
        ident.apply_save_result("abc", None, None)
        assert ident.created_at is not None


class TestPointer:
    def test_pointer_after_save(self):
        ident = RecordIdentity("Note")
        ident.apply_save_result("abc", T1, T1)
        assert ident.pointer == RecordPointer("Note", "abc")

    def test_pointer_before_save(self):
        with pytest.raises(NotSavedError):
            RecordIdentity("Note").pointer
