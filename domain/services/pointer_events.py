from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import List

PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class Pointer:
    x: float
    y: float
    button: int = PRIMARY_BUTTON


MoveHandler = Callable[[Pointer], None]
ReleaseHandler = Callable[[], None]


class PointerEventHub:
    """Window-level pointer listeners fed by the host event loop."""

    def __init__(self) -> None:
        self._subscriptions: List[DragSubscription] = []

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, on_move: MoveHandler, on_release: ReleaseHandler) -> DragSubscription:
        subscription = DragSubscription(self, on_move, on_release)
        self._subscriptions.append(subscription)
        return subscription

    def dispatch_move(self, pointer: Pointer) -> None:
        for subscription in list(self._subscriptions):
            subscription.on_move(pointer)

    def dispatch_release(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.on_release()

    def dispatch_blur(self) -> None:
        # Losing pointer tracking ends every session exactly like a release.
        self.dispatch_release()

    def _detach(self, subscription: DragSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)


class DragSubscription:
    """Move/release listeners that live exactly as long as one drag session."""

    def __init__(self, hub: PointerEventHub, on_move: MoveHandler, on_release: ReleaseHandler) -> None:
        self._hub = hub
        self.on_move = on_move
        self.on_release = on_release
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._hub._detach(self)

    def __enter__(self) -> DragSubscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
