"""Hand inbound work off the request path.

Backends, selected via INBOUND_DISPATCH:
- thread (default): runs handlers on a small worker pool so the webhook can
  acknowledge before venue lookups and the outbound send complete
- inline: runs handlers immediately in the caller (for tests and scripts)

Handlers run in a copy of the submitting context, so log records emitted by
the worker keep the request correlation id.
"""

from __future__ import annotations

import contextvars
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Literal

DispatchBackend = Literal["thread", "inline"]

DEFAULT_MAX_WORKERS = 4


class InboundDispatcher:
    """Run handlers according to the configured backend.

    The worker pool is created on the first submit; a dispatcher that never
    receives work starts no threads.
    """

    def __init__(
        self,
        backend: DispatchBackend = "thread",
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if backend not in ("thread", "inline"):
            raise ValueError(f"unknown dispatch backend: {backend}")
        self._backend = backend
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    @property
    def backend(self) -> DispatchBackend:
        return self._backend

    def submit(self, handler: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule handler(*args, **kwargs).

        Returns:
            Future of the handler result. With the inline backend the future
            is already resolved when submit returns.
        """
        ctx = contextvars.copy_context()

        if self._backend == "inline":
            future: Future = Future()
            try:
                future.set_result(ctx.run(handler, *args, **kwargs))
            except Exception as e:
                future.set_exception(e)
            return future

        return self._pool().submit(ctx.run, handler, *args, **kwargs)

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="orderlink-inbound",
                )
            return self._executor
