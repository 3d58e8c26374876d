"""Lifecycle wrapper for the outcome of a single asynchronous request.

Every tracked operation in the catalog pipeline is represented by one
``RequestState`` value. The value moves forward only:

    NOT_STARTED -> PENDING -> FAILED | READY

``FAILED`` and ``READY`` are terminal. The presentation layer never inspects
the status directly; it projects the state through ``render`` or
``render_default`` instead.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from redlist.catalog.exceptions import InvalidTransitionError

T = TypeVar("T")
V = TypeVar("V")

NOT_STARTED_TEXT = ""
PENDING_TEXT = "Loading..."
FAILED_TEXT = "Something went wrong."


class RequestStatus(str, Enum):
    """Lifecycle status of a tracked request."""

    NOT_STARTED = "not_started"
    PENDING = "pending"
    FAILED = "failed"
    READY = "ready"


_ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.NOT_STARTED: frozenset({RequestStatus.PENDING}),
    RequestStatus.PENDING: frozenset({RequestStatus.FAILED, RequestStatus.READY}),
    RequestStatus.FAILED: frozenset(),
    RequestStatus.READY: frozenset(),
}


@dataclass(frozen=True)
class RequestState(Generic[T]):
    """Immutable state of one asynchronous operation."""

    status: RequestStatus = RequestStatus.NOT_STARTED
    value: T | None = None

    @classmethod
    def not_started(cls) -> "RequestState[T]":
        return cls(RequestStatus.NOT_STARTED)

    @classmethod
    def pending(cls) -> "RequestState[T]":
        return cls(RequestStatus.PENDING)

    @classmethod
    def failed(cls) -> "RequestState[T]":
        return cls(RequestStatus.FAILED)

    @classmethod
    def ready(cls, value: T) -> "RequestState[T]":
        return cls(RequestStatus.READY, value)

    @property
    def is_not_started(self) -> bool:
        return self.status is RequestStatus.NOT_STARTED

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    @property
    def is_failed(self) -> bool:
        return self.status is RequestStatus.FAILED

    @property
    def is_ready(self) -> bool:
        return self.status is RequestStatus.READY

    @property
    def is_terminal(self) -> bool:
        return self.status in (RequestStatus.FAILED, RequestStatus.READY)

    def advance(self, next_state: "RequestState[T]") -> "RequestState[T]":
        """Validate a transition from this state and return the next one.

        Args:
            next_state: State the operation is moving to

        Returns:
            ``next_state`` unchanged, so callers can assign the result directly

        Raises:
            InvalidTransitionError: If the move is not forward along the lifecycle
        """
        if next_state.status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status.value, next_state.status.value)
        return next_state

    def render(
        self,
        on_failed: Callable[[], V],
        on_not_started: Callable[[], V],
        on_pending: Callable[[], V],
        on_ready: Callable[[T], V],
    ) -> V:
        """Project the state onto a value, one callback per status."""
        if self.status is RequestStatus.READY:
            return on_ready(self.value)  # type: ignore[arg-type]
        if self.status is RequestStatus.FAILED:
            return on_failed()
        if self.status is RequestStatus.PENDING:
            return on_pending()
        return on_not_started()

    def render_default(self, on_ready: Callable[[T], Any]) -> Any:
        """Project the state using fixed text for every non-ready status."""
        return self.render(
            on_failed=lambda: FAILED_TEXT,
            on_not_started=lambda: NOT_STARTED_TEXT,
            on_pending=lambda: PENDING_TEXT,
            on_ready=on_ready,
        )

    def __repr__(self) -> str:
        if self.status is RequestStatus.READY:
            return f"RequestState.ready({self.value!r})"
        return f"RequestState.{self.status.value}()"
