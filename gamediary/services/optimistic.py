"""Confirmed/pending state layering for optimistic updates."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

_UNSET = object()


class OptimisticValue(Generic[T]):
    """Two explicit layers over one piece of local view state.

    ``confirmed`` is the last value acknowledged by the record store and
    ``pending`` is the in-flight optimistic value, if any.  Readers use
    :attr:`current`, which prefers the pending overlay.  A successful write
    replaces the confirmed layer with what the store returned and drops the
    overlay; a failed write drops the overlay so readers see the confirmed
    value again.
    """

    __slots__ = ("_confirmed", "_pending")

    def __init__(self, confirmed: T) -> None:
        self._confirmed: T = confirmed
        self._pending: object = _UNSET

    @property
    def confirmed(self) -> T:
        return self._confirmed

    @property
    def has_pending(self) -> bool:
        return self._pending is not _UNSET

    @property
    def current(self) -> T:
        if self._pending is _UNSET:
            return self._confirmed
        return self._pending  # type: ignore[return-value]

    def stage(self, value: T) -> None:
        if self._pending is not _UNSET:
            raise RuntimeError("An optimistic update is already in flight")
        self._pending = value

    def confirm(self, value: T) -> None:
        self._confirmed = value
        self._pending = _UNSET

    def rollback(self) -> T:
        self._pending = _UNSET
        return self._confirmed

    def reset(self, confirmed: T) -> None:
        """Replace the confirmed layer after a fresh read, unless a write is in flight."""

        if self._pending is _UNSET:
            self._confirmed = confirmed

    async def apply(self, value: T, write: Callable[[], Awaitable[T]]) -> T:
        """Stage ``value``, run ``write`` and settle the layers on its outcome."""

        self.stage(value)
        try:
            confirmed = await write()
        except BaseException:
            self.rollback()
            raise
        self.confirm(confirmed)
        return confirmed


class ViewRegistry(Generic[K, T]):
    """Optimistic views keyed by entity, holding at most ``max_settled`` idle ones.

    Views with a write in flight are never evicted.  Settled views are kept
    in least-recently-used order and the oldest are dropped once more than
    ``max_settled`` of them accumulate.
    """

    def __init__(self, empty: T, *, max_settled: int) -> None:
        self._empty = empty
        self._max_settled = max_settled
        self._views: OrderedDict[K, OptimisticValue[T]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._views)

    def get(self, key: K) -> OptimisticValue[T] | None:
        return self._views.get(key)

    def current(self, key: K) -> T:
        view = self._views.get(key)
        return view.current if view is not None else self._empty

    def open(self, key: K) -> OptimisticValue[T]:
        """Return the view for ``key``, creating an empty one if needed."""

        view = self._views.get(key)
        if view is None:
            view = OptimisticValue(self._empty)
            self._views[key] = view
        else:
            self._views.move_to_end(key)
        return view

    def release(self, key: K, *, keep: bool = True) -> None:
        """Settle bookkeeping after an operation; ``keep=False`` drops an idle view."""

        view = self._views.get(key)
        if view is not None and not keep and not view.has_pending:
            del self._views[key]
        self._prune()

    def discard(self, key: K) -> None:
        view = self._views.get(key)
        if view is not None and not view.has_pending:
            del self._views[key]

    def _prune(self) -> None:
        settled = [key for key, view in self._views.items() if not view.has_pending]
        for key in settled[: max(0, len(settled) - self._max_settled)]:
            del self._views[key]


__all__ = ["OptimisticValue", "ViewRegistry"]
