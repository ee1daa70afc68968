"""Per-record FIFO gate that serializes operations on one record."""

from __future__ import annotations

import threading

from record_store import OperationKind, OperationState

# Tickets on every gate are taken under this one lock, whichever dispatcher
# drives the record.
TICKET_LOCK = threading.Lock()


class RecordGate:
    """Ticket turnstile: operations run one at a time, in ticket order.

    A multi-record operation takes all of its tickets while holding
    ``TICKET_LOCK``, so any two operations see the same relative order on
    every gate they share.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._next_ticket = 0
        self._serving = 0
        self._cancelled: set[int] = set()
        self.state = OperationState.IDLE
        self.kind: OperationKind | None = None

    def take_ticket(self) -> int:
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            return ticket

    def enter(self, ticket: int, kind: OperationKind) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._serving == ticket)
            self.state = OperationState.IN_FLIGHT
            self.kind = kind

    def leave(self, succeeded: bool) -> None:
        with self._cond:
            self.state = OperationState.SUCCEEDED if succeeded else OperationState.FAILED
            self._advance()

    def cancel(self, ticket: int) -> None:
        """Give up a ticket that will never enter; later tickets skip over it."""
        with self._cond:
            if ticket == self._serving:
                self._advance()
            elif ticket > self._serving:
                self._cancelled.add(ticket)

    def _advance(self) -> None:
        self._serving += 1
        while self._serving in self._cancelled:
            self._cancelled.discard(self._serving)
            self._serving += 1
        self._cond.notify_all()

    @property
    def queued(self) -> int:
        """Operations holding a ticket that have not finished yet."""
        with self._cond:
            return self._next_ticket - self._serving - len(self._cancelled)
