"""TimerQueue — cancellable single-shot deferred callbacks."""
from __future__ import annotations

from typing import Callable

from horde_schedule.components import Deferred, TimerToken


class TimerQueue:
    """Holds pending Deferred callbacks and advances them by frame deltas.

    A token fires at most once. Cancelling a token before it fires is the
    only way to revoke it; cancelling after it fired is a no-op.
    """

    def __init__(self) -> None:
        self._pending: dict[int, Deferred] = {}
        self._next_id = 1
        self._paused = False

    # --- Scheduling ---

    def schedule(
        self, delay_ms: float, callback: Callable[[], None], name: str = ""
    ) -> TimerToken:
        """Fire callback after delay_ms of accumulated update time."""
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        token = TimerToken(id=self._next_id, name=name)
        self._next_id += 1
        self._pending[token.id] = Deferred(
            token=token, remaining_ms=float(delay_ms), callback=callback
        )
        return token

    def cancel(self, token: TimerToken | None) -> bool:
        """Revoke a pending token. Returns True if it was still pending."""
        if token is None:
            return False
        deferred = self._pending.pop(token.id, None)
        if deferred is None:
            return False
        deferred.cancelled = True
        return True

    def cancel_all(self) -> None:
        for deferred in self._pending.values():
            deferred.cancelled = True
        self._pending.clear()

    # --- Queries ---

    def is_pending(self, token: TimerToken | None) -> bool:
        return token is not None and token.id in self._pending

    def remaining(self, token: TimerToken | None) -> float:
        """Milliseconds until token fires. 0 if not pending."""
        if token is None:
            return 0.0
        deferred = self._pending.get(token.id)
        return deferred.remaining_ms if deferred is not None else 0.0

    def pending(self) -> list[TimerToken]:
        return [d.token for d in self._pending.values()]

    def __len__(self) -> int:
        return len(self._pending)

    # --- Pause ---

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    # --- Advance ---

    def update(self, dt_ms: float) -> None:
        """Advance every pending timer and fire due ones in scheduling order."""
        if self._paused or not self._pending:
            return
        due: list[Deferred] = []
        for deferred in list(self._pending.values()):
            deferred.remaining_ms -= dt_ms
            if deferred.remaining_ms <= 0:
                due.append(deferred)
        for deferred in due:
            # An earlier callback in this batch may have cancelled it
            if deferred.cancelled or deferred.token.id not in self._pending:
                continue
            del self._pending[deferred.token.id]
            deferred.remaining_ms = 0.0
            deferred.callback()
