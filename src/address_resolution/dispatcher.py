"""Debounced, stale-safe lookups for type-ahead fields."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from .components import FieldContext, QueryToken
from .errors import InvalidQueryState, TransientFetchError

logger = logging.getLogger(__name__)

Pipeline = Callable[[QueryToken], Sequence[Any]]
Sink = Callable[[str, List[Any]], None]


class FieldState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


class FieldDispatcher:
    """Per-field state machine: Idle -> Pending -> InFlight -> Idle.

    Each text change cancels the pending debounce timer and issues a token with
    a higher sequence number. When the timer fires the pipeline runs on the
    shared executor. Results are delivered only if their token is still the
    latest one issued for the field; in-flight work for an older token is left
    to finish and its result is dropped. Deliveries for one field never overlap;
    clearing the text never waits on a busy sink, the empty delivery is handed
    to the pool instead.
    """

    def __init__(
        self,
        field_id: str,
        pipeline: Pipeline,
        sink: Sink,
        executor: ThreadPoolExecutor,
        *,
        debounce: float = 0.25,
        context: Optional[FieldContext] = None,
        min_query_length: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.field_id = field_id
        self.debounce = debounce
        self.min_query_length = min_query_length
        self._pipeline = pipeline
        self._sink = sink
        self._executor = executor
        self._clock = clock
        self._context = context or FieldContext()
        self._lock = threading.Lock()
        self._delivery_lock = threading.Lock()
        self._sequence = 0
        self._state = FieldState.IDLE
        self._timer: Optional[threading.Timer] = None
        self._inflight: Set[Future] = set()
        self._closed = False

    @property
    def state(self) -> FieldState:
        with self._lock:
            return self._state

    @property
    def context(self) -> FieldContext:
        with self._lock:
            return self._context

    @property
    def latest_sequence(self) -> int:
        with self._lock:
            return self._sequence

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def update_context(self, **changes: Any) -> FieldContext:
        """Change pickup/drop side or selected customer for future queries."""
        with self._lock:
            self._context = replace(self._context, **changes)
            return self._context

    def on_text_changed(self, text: Optional[str]) -> Optional[QueryToken]:
        query = (text or "").strip()
        with self._lock:
            if self._closed:
                return None
            self._cancel_timer()
            self._sequence += 1
            sequence = self._sequence
            if len(query) >= max(1, self.min_query_length):
                token = QueryToken(
                    field_id=self.field_id,
                    sequence_number=sequence,
                    query_text=query,
                    issued_at=self._clock(),
                    context=self._context,
                )
                self._state = FieldState.PENDING
                self._timer = self._start_timer(self.debounce, self._fire, token)
                return token
            self._state = FieldState.IDLE

        self._deliver_empty(sequence)
        return None

    def clear(self) -> None:
        self.on_text_changed("")

    def close(self) -> None:
        """Stop the field; pending and in-flight results are never delivered."""
        with self._lock:
            self._closed = True
            self._cancel_timer()
            self._state = FieldState.IDLE

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no timer is pending and no pipeline run is in flight."""
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            with self._lock:
                timer = self._timer
                inflight = list(self._inflight)
            if timer is None and not inflight:
                return True
            remaining = None if deadline is None else max(0.0, deadline - self._clock())
            if remaining == 0.0:
                return False
            if timer is not None:
                timer.join(remaining)
            if inflight:
                wait(inflight, timeout=remaining)
            time.sleep(0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _start_timer(self, delay: float, callback: Callable[..., None], *args: Any) -> threading.Timer:
        timer = threading.Timer(delay, callback, args=args)
        timer.daemon = True
        timer.name = f"debounce-{self.field_id}"
        timer.start()
        return timer

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, token: QueryToken) -> None:
        with self._lock:
            if self._closed or token.sequence_number != self._sequence:
                return
            self._timer = None
            self._state = FieldState.IN_FLIGHT
            future = self._executor.submit(self._run, token)
            self._inflight.add(future)
        future.add_done_callback(self._inflight.discard)

    def _run(self, token: QueryToken) -> None:
        try:
            results = list(self._pipeline(token))
        except TransientFetchError as exc:
            logger.warning("Lookup for field '%s' failed: %s", self.field_id, exc)
            self._schedule_clear(token)
            return
        except Exception:
            logger.exception("Lookup pipeline for field '%s' raised", self.field_id)
            self._schedule_clear(token)
            return
        self._deliver(token.sequence_number, results)

    def _schedule_clear(self, token: QueryToken) -> None:
        # Previous suggestions stay visible for one more debounce period.
        with self._lock:
            if self._closed or token.sequence_number != self._sequence:
                return
            self._timer = self._start_timer(self.debounce, self._clear_after_failure, token.sequence_number)

    def _clear_after_failure(self, sequence: int) -> None:
        with self._lock:
            if self._sequence == sequence:
                self._timer = None
        self._deliver(sequence, [])

    def _deliver_empty(self, sequence: int) -> None:
        # never wait on a sink that is still busy with an older result
        if not self._delivery_lock.acquire(blocking=False):
            with self._lock:
                if self._closed:
                    return
                future = self._executor.submit(self._deliver, sequence, [])
                self._inflight.add(future)
            future.add_done_callback(self._inflight.discard)
            return
        try:
            self._deliver_locked(sequence, [])
        finally:
            self._delivery_lock.release()

    def _deliver(self, sequence: int, results: List[Any]) -> bool:
        with self._delivery_lock:
            return self._deliver_locked(sequence, results)

    def _deliver_locked(self, sequence: int, results: List[Any]) -> bool:
        with self._lock:
            if self._closed:
                return False
            if sequence != self._sequence:
                logger.debug(
                    "Discarding stale result #%d for field '%s' (latest #%d)",
                    sequence,
                    self.field_id,
                    self._sequence,
                )
                return False
            self._state = FieldState.IDLE
        try:
            self._sink(self.field_id, results)
        except InvalidQueryState:
            logger.debug("Sink for field '%s' is gone", self.field_id)
            return False
        except Exception:
            logger.exception("Sink for field '%s' raised", self.field_id)
            return False
        return True


class QueryDispatcher:
    """Owns the worker pool and the set of open fields."""

    def __init__(self, max_workers: int = 4, *, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="address-lookup"
        )
        self._lock = threading.Lock()
        self._fields: Dict[str, FieldDispatcher] = {}

    def open_field(
        self,
        field_id: str,
        pipeline: Pipeline,
        sink: Sink,
        *,
        debounce: float = 0.25,
        context: Optional[FieldContext] = None,
        min_query_length: int = 1,
    ) -> FieldDispatcher:
        field = FieldDispatcher(
            field_id,
            pipeline,
            sink,
            self._executor,
            debounce=debounce,
            context=context,
            min_query_length=min_query_length,
        )
        with self._lock:
            previous = self._fields.get(field_id)
            self._fields[field_id] = field
        if previous is not None:
            previous.close()
        return field

    def get(self, field_id: str) -> Optional[FieldDispatcher]:
        with self._lock:
            return self._fields.get(field_id)

    def close_field(self, field_id: str) -> None:
        with self._lock:
            field = self._fields.pop(field_id, None)
        if field is not None:
            field.close()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            fields = list(self._fields.values())
            self._fields.clear()
        for field in fields:
            field.close()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
