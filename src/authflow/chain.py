"""Sequential composition of requests.

A chain runs its steps one after another. Each step after the first may derive
extra parameters or headers from the previous step's value before it starts.
The first failure ends the chain; later steps are never started. Steps that
already succeeded are not rolled back.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import CancelledError, Executor, Future
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, List, Mapping, NamedTuple, Optional, Sequence, Tuple, TypeVar

from .exceptions import RequestAlreadyStartedError
from .request import DoneCallback, Request, default_executor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StepUpdate(NamedTuple):
    """Parameters and headers merged into a step before it starts."""

    parameters: Mapping[str, Any] = MappingProxyType({})
    headers: Mapping[str, str] = MappingProxyType({})


Update = Callable[[Any], StepUpdate]
ResultMapper = Callable[[List[Any]], Any]


class ChainState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _last_value(values: List[Any]) -> Any:
    return values[-1]


class RequestChain(Generic[T]):
    """Runs requests in order with short-circuit failure propagation.

    Exposes the same surface as :class:`Request`: it can be configured while
    pending and executed exactly once, blocking, as a coroutine or in the
    background.
    """

    def __init__(
        self,
        first: Request[Any],
        *,
        result: Optional[ResultMapper] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._steps: List[Tuple[Request[Any], Optional[Update]]] = [(first, None)]
        self._result = result or _last_value
        self._executor = executor
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self.state = ChainState.PENDING
        self.current_step: Optional[int] = None

    def __repr__(self) -> str:
        return f"RequestChain({', '.join(repr(request) for request, _ in self._steps)}, state={self.state.value})"

    @property
    def steps(self) -> Sequence[Request[Any]]:
        return tuple(request for request, _ in self._steps)

    def _ensure_pending(self) -> None:
        if self.state is not ChainState.PENDING:
            raise RequestAlreadyStartedError(f"{self!r} was already started.")

    def then(self, request: Request[Any], update: Optional[Update] = None) -> "RequestChain[T]":
        """Append a step that runs only after the previous one succeeded."""

        with self._lock:
            self._ensure_pending()
            self._steps.append((request, update))
        return self

    def add_parameter(self, key: str, value: Any, step: int = 0) -> "RequestChain[T]":
        return self.add_parameters({key: value}, step=step)

    def add_parameters(self, parameters: Mapping[str, Any], step: int = 0) -> "RequestChain[T]":
        with self._lock:
            self._ensure_pending()
            self._steps[step][0].add_parameters(parameters)
        return self

    def add_header(self, name: str, value: str) -> "RequestChain[T]":
        with self._lock:
            self._ensure_pending()
            started = [request for request, _ in self._steps if request.started]
            if started:
                raise RequestAlreadyStartedError(f"{started[0]!r} was already started and cannot be modified.")
            for request, _ in self._steps:
                request.add_header(name, value)
        return self

    def _begin(self) -> None:
        with self._lock:
            self._ensure_pending()
            self.state = ChainState.RUNNING

    def _prepare(self, index: int, values: List[Any]) -> Request[Any]:
        if self._cancelled.is_set():
            self.state = ChainState.CANCELLED
            raise CancelledError(f"Chain cancelled before step {index}.")
        request, update = self._steps[index]
        if update is not None:
            step_update = update(values[-1])
            request.add_parameters(step_update.parameters)
            for name, value in step_update.headers.items():
                request.add_header(name, value)
        self.current_step = index
        logger.debug("Running step %s of %s: %r", index + 1, len(self._steps), request)
        return request

    def _finish(self, values: List[Any]) -> T:
        self.state = ChainState.SUCCEEDED
        return self._result(values)

    def _stop(self, state: ChainState) -> None:
        if self.state is ChainState.RUNNING:
            self.state = state
        logger.debug("Chain %s at step %s", self.state.value, self.current_step)

    def _run(self) -> T:
        values: List[Any] = []
        try:
            for index in range(len(self._steps)):
                values.append(self._prepare(index, values).execute())
        except CancelledError:
            self._stop(ChainState.CANCELLED)
            raise
        except BaseException:
            self._stop(ChainState.FAILED)
            raise
        return self._finish(values)

    def _run_into(self, future: "ChainFuture[T]") -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = self._run()
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    def execute(self) -> T:
        self._begin()
        return self._run()

    async def execute_async(self) -> T:
        self._begin()
        values: List[Any] = []
        try:
            for index in range(len(self._steps)):
                values.append(await self._prepare(index, values).execute_async())
        except (CancelledError, asyncio.CancelledError):
            self._stop(ChainState.CANCELLED)
            raise
        except BaseException:
            self._stop(ChainState.FAILED)
            raise
        return self._finish(values)

    def start(self, callback: Optional[DoneCallback] = None) -> "ChainFuture[T]":
        """Run the chain on a worker thread.

        Cancelling the returned future cancels the chain: a queued chain never
        sends anything, a running one starts no further step.
        """

        self._begin()
        future: ChainFuture[T] = ChainFuture(self)
        future.add_done_callback(self._on_done)
        if callback is not None:
            future.add_done_callback(callback)
        (self._executor or default_executor()).submit(self._run_into, future)
        return future

    def _on_done(self, future: "Future[T]") -> None:
        if future.cancelled():
            self._stop(ChainState.CANCELLED)

    def cancel(self) -> None:
        """Prevent any step that has not started yet from running.

        A step already in flight completes; its outcome is discarded in
        favour of cancellation only if further steps remain.
        """

        self._cancelled.set()


class ChainFuture(Future, Generic[T]):
    """Future returned by :meth:`RequestChain.start`."""

    def __init__(self, chain: RequestChain[T]) -> None:
        super().__init__()
        self._chain = chain

    def cancel(self) -> bool:
        self._chain.cancel()
        return super().cancel()


def headers_update(headers: Dict[str, str]) -> StepUpdate:
    return StepUpdate(headers=headers)


__all__ = ["RequestChain", "ChainFuture", "StepUpdate", "ChainState", "headers_update"]
