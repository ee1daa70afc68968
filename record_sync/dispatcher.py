"""Operation dispatch: one execution path, four ways to get the result.

Every public calling convention (blocking, blocking with an error output,
listener object, callback closure) is a thin adapter over ``run`` or
``submit``, which both end in ``_execute``.
"""

from __future__ import annotations

import threading
import traceback
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from record_store import OperationKind, RecordSyncError, SyncConfig
from record_store.log import sync_log, sync_log_event

from .gate import TICKET_LOCK
from .remote import RemoteStore


@dataclass
class Outcome:
    """What an operation produced: ``result`` on success, ``error`` on failure."""

    kind: OperationKind
    succeeded: bool
    result: Any = None
    error: Exception | None = None


@dataclass
class ErrorRef:
    """Output parameter for the blocking convention; holds the failure, if any."""

    error: Exception | None = None


class OperationListener(Protocol):
    def on_operation_result(self, result: Any, error: Exception | None) -> None: ...


ResultCallback = Callable[[Any, "Exception | None"], None]


class Operation:
    """Unit of work against the remote store.

    ``check`` runs on the calling thread before anything is queued and must
    not touch the network. ``execute`` runs once the operation owns the
    gates of all its ``records``.
    """

    kind: OperationKind
    failure_result: Any = False

    def __init__(self, records: list[Any]) -> None:
        self.records = records

    def check(self) -> None:
        pass

    def execute(self, remote: RemoteStore, config: SyncConfig) -> Any:
        raise NotImplementedError

    def describe(self) -> str:
        return ", ".join(r.describe() for r in self.records) or "<empty>"


class OperationDispatcher:
    def __init__(
        self,
        remote: RemoteStore,
        config: SyncConfig | None = None,
        callback_executor: Executor | None = None,
    ) -> None:
        self.remote = remote
        self.config = config or SyncConfig()
        self._workers = ThreadPoolExecutor(
            max_workers=max(1, self.config.background_workers),
            thread_name_prefix="record-sync",
        )
        self._owns_callbacks = callback_executor is None
        # One delivery thread keeps every callback on the same context.
        self._callbacks = callback_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="record-sync-callbacks"
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # -- Calling conventions --

    def run_blocking(self, op: Operation, error_out: ErrorRef | None = None) -> bool:
        outcome = self.run(op)
        if error_out is not None:
            error_out.error = outcome.error
        return outcome.succeeded

    def run_with_listener(
        self, op: Operation, listener: OperationListener | None = None
    ) -> Future[Outcome]:
        if listener is None:
            return self.submit(op)
        return self.submit(op, lambda o: listener.on_operation_result(o.result, o.error))

    def run_with_callback(self, op: Operation, callback: ResultCallback) -> Future[Outcome]:
        return self.submit(op, lambda o: callback(o.result, o.error))

    # -- Core path --

    def run(self, op: Operation) -> Outcome:
        """Execute ``op`` on the calling thread."""
        rejected = self._precheck(op)
        if rejected is not None:
            return rejected
        with TICKET_LOCK:
            tickets = self._take_tickets(op)
        return self._execute(op, tickets)

    def submit(
        self, op: Operation, on_complete: Callable[[Outcome], None] | None = None
    ) -> Future[Outcome]:
        """Execute ``op`` on a worker; ``on_complete`` runs on the callback context.

        A failed precondition is reported right away: ``on_complete`` runs on
        the calling thread and the returned future is already resolved.
        Raises RuntimeError once the dispatcher is shut down.
        """
        rejected = self._precheck(op)
        if rejected is not None:
            if on_complete is not None:
                on_complete(rejected)
            done: Future[Outcome] = Future()
            done.set_result(rejected)
            return done
        # Tickets and queue position are assigned together so workers
        # always pick up operations in ticket order.
        with TICKET_LOCK:
            if self._closed:
                raise RuntimeError("OperationDispatcher is shut down")
            tickets = self._take_tickets(op)
            try:
                return self._workers.submit(self._execute_and_deliver, op, tickets, on_complete)
            except BaseException:
                self._cancel_tickets(op, tickets)
                raise

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting background work.

        Operations already queued still run and deliver their completions;
        the callback context closes only after the workers have drained.
        With ``wait=False`` that draining happens on a helper thread.
        """
        with TICKET_LOCK:
            if self._closed:
                return
            self._closed = True
        sync_log(f"Dispatcher shutting down (wait={wait})")
        if wait:
            self._drain()
        else:
            self._workers.shutdown(wait=False)
            threading.Thread(target=self._drain, name="record-sync-shutdown", daemon=True).start()

    # -- Internals --

    def _drain(self) -> None:
        self._workers.shutdown(wait=True)
        if self._owns_callbacks:
            self._callbacks.shutdown(wait=True)

    def _precheck(self, op: Operation) -> Outcome | None:
        try:
            op.check()
        except RecordSyncError as e:
            sync_log_event(op.kind, "rejected", op.describe(), e)
            return Outcome(op.kind, False, op.failure_result, e)
        return None

    def _take_tickets(self, op: Operation) -> list[int]:
        return [r.gate.take_ticket() for r in op.records]

    def _cancel_tickets(self, op: Operation, tickets: list[int]) -> None:
        for record, ticket in zip(op.records, tickets):
            record.gate.cancel(ticket)

    def _execute(self, op: Operation, tickets: list[int]) -> Outcome:
        gates = [r.gate for r in op.records]
        for gate, ticket in zip(gates, tickets):
            gate.enter(ticket, op.kind)
        succeeded = False
        try:
            sync_log_event(op.kind, "dispatched", op.describe())
            result = op.execute(self.remote, self.config)
            succeeded = True
            outcome = Outcome(op.kind, True, result)
        except RecordSyncError as e:
            outcome = Outcome(op.kind, False, op.failure_result, e)
        except Exception as e:
            sync_log_event(op.kind, "raised", op.describe(), traceback.format_exc())
            outcome = Outcome(op.kind, False, op.failure_result, e)
        finally:
            for gate in reversed(gates):
                gate.leave(succeeded)
        if outcome.succeeded:
            sync_log_event(op.kind, "succeeded", op.describe())
        else:
            sync_log_event(op.kind, "failed", op.describe(), outcome.error)
        return outcome

    def _execute_and_deliver(
        self,
        op: Operation,
        tickets: list[int],
        on_complete: Callable[[Outcome], None] | None,
    ) -> Outcome:
        outcome = self._execute(op, tickets)
        if on_complete is None:
            return outcome
        try:
            self._callbacks.submit(self._deliver, on_complete, outcome)
        except RuntimeError:
            # Callback context already closed (e.g. a caller-owned executor).
            sync_log_event(outcome.kind, "delivered inline", op.describe())
            self._deliver_inline(on_complete, outcome)
        return outcome

    def _deliver(self, on_complete: Callable[[Outcome], None], outcome: Outcome) -> None:
        try:
            on_complete(outcome)
        except Exception:
            sync_log_event(outcome.kind, "raised in", "callback", traceback.format_exc())
            raise

    def _deliver_inline(self, on_complete: Callable[[Outcome], None], outcome: Outcome) -> None:
        try:
            on_complete(outcome)
        except Exception:
            # The operation already finished; its Outcome stays the future's result.
            sync_log_event(outcome.kind, "raised in", "callback", traceback.format_exc())
