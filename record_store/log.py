"""
record-sync - Logging Module
File log shared by the caller thread, sync workers and the callback thread.

Free-form lines go through ``sync_log``. Operation lifecycle lines go through
``sync_log_event`` so they share one greppable shape::

    [2026-10-18 12:00:00] [record-sync_0] save dispatched Note(abc123)
    [2026-10-18 12:00:00] [record-sync_0] save failed Note(abc123): NetworkError('boom')
"""
import sys
import threading
from datetime import datetime

from . import conf
from .sync_protocol import OperationKind

# =============================================================================
# CONFIGURATION
# =============================================================================

LOG = True  # Set to False to disable logging
LOG_TO_STDERR = False  # Mirror log lines to stderr
first_line = True
_write_lock = threading.Lock()

# =============================================================================
# LOGGING
# =============================================================================


def _format(message: str) -> str:
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return f"[{timestamp}] [{threading.current_thread().name}] {message}\n"


def sync_log(message: str) -> None:
    """Append a line to the record-sync log file if LOG is enabled."""
    global first_line
    if not LOG:
        return
    lines = [_format(message)]
    with _write_lock:
        if first_line:
            first_line = False
            lines.insert(0, _format(f"--- New record-sync session (log: {conf.LOG_FILE}) ---"))
        if LOG_TO_STDERR:
            sys.stderr.writelines(lines)
        conf.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(conf.LOG_FILE, "a", encoding="utf-8") as f:
            f.writelines(lines)


def sync_log_event(
    kind: OperationKind | str,
    status: str,
    target: str,
    detail: object = None,
) -> None:
    """Log one step of an operation: ``<kind> <status> <target>[: detail]``."""
    message = f"{kind} {status} {target}"
    if detail is not None:
        message += f": {detail!r}" if isinstance(detail, BaseException) else f": {detail}"
    sync_log(message)


def sync_log_lines(kind: OperationKind | str | None = None) -> list[str]:
    """Lines of the current log file, optionally only those for one operation kind."""
    if not conf.LOG_FILE.exists():
        return []
    lines = conf.LOG_FILE.read_text(encoding="utf-8").splitlines()
    if kind is None:
        return lines
    marker = f"] {kind} "
    return [line for line in lines if marker in line]


def sync_log_print() -> None:
    """Print the contents of the log file to stdout."""
    lines = sync_log_lines()
    if lines:
        print("\n".join(lines))
    elif conf.LOG_FILE.exists():
        print("[record-sync log is empty]")
    else:
        print("[record-sync log file does not exist]")


def sync_log_clear() -> None:
    """Delete the log file and start a new session banner on the next write."""
    global first_line
    with _write_lock:
        if conf.LOG_FILE.exists():
            conf.LOG_FILE.unlink()
        first_line = True
