"""Tests for the record-sync log helpers."""

import threading

from record_store import NetworkError, OperationKind, conf, log
from record_sync import Record


class TestSyncLog:
    def test_writes_to_log_file(self):
        log.sync_log("hello")
        assert "hello" in conf.LOG_FILE.read_text()

    def test_disabled(self, monkeypatch):
        monkeypatch.setattr(log, "LOG", False)
        log.sync_log("silent")
        assert not conf.LOG_FILE.exists()

    def test_clear(self):
        log.sync_log("x")
        log.sync_log_clear()
        assert not conf.LOG_FILE.exists()

    def test_print(self, capsys):
        log.sync_log("visible")
        log.sync_log_print()
        assert "visible" in capsys.readouterr().out

    def test_print_missing(self, capsys):
        log.sync_log_print()
        assert "does not exist" in capsys.readouterr().out


class TestSyncLogEvent:
    def test_event_line_shape(self):
        log.sync_log_event(OperationKind.SAVE, "dispatched", "Note(abc)")
        log.sync_log_event(OperationKind.SAVE, "failed", "Note(abc)", NetworkError("boom"))
        lines = log.sync_log_lines(OperationKind.SAVE)
        assert lines[0].endswith("save dispatched Note(abc)")
        assert lines[1].endswith("save failed Note(abc): NetworkError('boom')")

    def test_lines_include_thread_name(self):
        log.sync_log("where")
        assert f"[{threading.current_thread().name}] where" in log.sync_log_lines()[-1]

    def test_filter_by_kind(self):
        log.sync_log_event(OperationKind.SAVE, "succeeded", "Note(a)")
        log.sync_log_event(OperationKind.DELETE, "succeeded", "Note(a)")
        assert len(log.sync_log_lines(OperationKind.DELETE)) == 1

    def test_clear_starts_new_session(self):
        log.sync_log("first")
        log.sync_log_clear()
        log.sync_log("second")
        lines = log.sync_log_lines()
        assert "New record-sync session" in lines[0]
        assert lines[1].endswith("second")

    def test_dispatcher_logs_operation_events(self, dispatcher):
        note = Record("Note", dispatcher)
        note.save()
        statuses = [line.split("] save ")[1].split(" ")[0] for line in log.sync_log_lines("save")]
        assert statuses[-2:] == ["dispatched", "succeeded"]
