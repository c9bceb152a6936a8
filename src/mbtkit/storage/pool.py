"""Bounded pool of independently validated MBTiles handles."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, List, Optional, Set, Tuple, TypeVar

from mbtkit.config.loader import AccessConfig
from mbtkit.core.errors import MbtilesError, PoolClosedError, PoolTimeoutError
from mbtkit.core.models import MbtilesMetadata, PoolConfig
from mbtkit.logging import get_logger

from .handle import MbtilesHandle
from .validation import validate_mbtiles

LOGGER = get_logger(__name__)

R = TypeVar("R")


class MbtilesPool:
    """Hand out handles to one caller at a time, creating up to ``max_size``.

    Every physical connection is validated on creation and gets its own read
    statement. The metadata snapshot taken when the pool was created is shared
    by all handles and assumed not to change for the pool's lifetime.
    """

    def __init__(
        self,
        path: Path,
        metadata: MbtilesMetadata,
        *,
        min_idle: int = 1,
        max_idle_time: float = 900.0,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if min_idle < 0:
            raise ValueError("min_idle must be non-negative")
        self._path = path
        self._metadata = metadata
        self._min_idle = min_idle
        self._max_idle_time = max_idle_time
        self._max_size = max_size
        self._clock = clock
        self._idle: List[Tuple[MbtilesHandle, float]] = []
        self._checked_out: Set[MbtilesHandle] = set()
        self._open_count = 0
        self._closed = False
        self._condition = threading.Condition()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def metadata(self) -> MbtilesMetadata:
        return self._metadata

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def open_count(self) -> int:
        with self._condition:
            return self._open_count

    @property
    def idle_count(self) -> int:
        with self._condition:
            return len(self._idle)

    def checkout(self, timeout: Optional[float] = None) -> MbtilesHandle:
        """Return an idle handle, or create one if below ``max_size``.

        Blocks while the pool is saturated. ``timeout`` bounds the wait in
        seconds; ``None`` waits indefinitely.
        """

        deadline = None if timeout is None else self._clock() + timeout
        with self._condition:
            stale = self._take_stale_locked()
        self._retire(stale)
        handle: Optional[MbtilesHandle] = None
        with self._condition:
            while True:
                if self._closed:
                    raise PoolClosedError(f"pool for {self._path} is closed")
                if self._idle:
                    handle, _ = self._idle.pop()
                    self._checked_out.add(handle)
                    return handle
                if self._open_count < self._max_size:
                    self._open_count += 1
                    break
                remaining = None if deadline is None else deadline - self._clock()
                if remaining is not None and remaining <= 0:
                    raise PoolTimeoutError(
                        f"no handle available for {self._path} within {timeout}s"
                    )
                self._condition.wait(remaining)
        try:
            handle = self._create_handle()
        except BaseException:
            with self._condition:
                self._open_count -= 1
                self._condition.notify()
            raise
        with self._condition:
            self._checked_out.add(handle)
        return handle

    def checkin(self, handle: MbtilesHandle) -> None:
        """Return ``handle`` to the pool for reuse.

        Handles this pool did not hand out, or already took back, are ignored.
        """

        with self._condition:
            if not self._release_locked(handle):
                return
            if self._closed or handle.closed:
                to_close = [handle]
            else:
                self._idle.append((handle, self._clock()))
                self._condition.notify()
                to_close = self._take_stale_locked()
        self._retire(to_close)

    def discard(self, handle: MbtilesHandle) -> None:
        """Close ``handle`` instead of returning it, then free its slot."""

        with self._condition:
            if not self._release_locked(handle):
                return
        self._retire([handle])

    @contextmanager
    def connection(self, timeout: Optional[float] = None) -> Generator[MbtilesHandle, None, None]:
        """Check out a handle for the duration of the block.

        A handle whose block raised is discarded, since its statement may be
        left mid-step.
        """

        handle = self.checkout(timeout)
        try:
            yield handle
        except BaseException:
            self.discard(handle)
            raise
        self.checkin(handle)

    def run(self, action: Callable[[MbtilesHandle], R], timeout: Optional[float] = None) -> R:
        with self.connection(timeout) as handle:
            return action(handle)

    def close(self) -> None:
        """Close idle handles and refuse further checkouts.

        Handles still checked out are closed when they are checked in.
        """

        with self._condition:
            self._closed = True
            idle = [handle for handle, _ in self._idle]
            self._idle.clear()
            self._condition.notify_all()
        self._retire(idle)
        LOGGER.info("closed mbtiles pool", extra={"path": str(self._path)})

    def __enter__(self) -> "MbtilesPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _create_handle(self) -> MbtilesHandle:
        connection, _ = validate_mbtiles(self._path)
        handle = MbtilesHandle(self._path, connection, self._metadata)
        LOGGER.debug("opened pooled handle", extra={"path": str(self._path)})
        return handle

    def _take_stale_locked(self) -> List[MbtilesHandle]:
        """Remove idle handles past ``max_idle_time``, keeping ``min_idle``."""

        now = self._clock()
        stale: List[MbtilesHandle] = []
        fresh: List[Tuple[MbtilesHandle, float]] = []
        # Oldest first so the most recently used handles are the ones kept.
        for handle, returned_at in sorted(self._idle, key=lambda item: item[1]):
            expired = now - returned_at > self._max_idle_time
            if expired and len(self._idle) - len(stale) > self._min_idle:
                stale.append(handle)
            else:
                fresh.append((handle, returned_at))
        self._idle = fresh
        return stale

    def _release_locked(self, handle: MbtilesHandle) -> bool:
        if handle not in self._checked_out:
            LOGGER.debug("ignored handle not checked out", extra={"path": str(self._path)})
            return False
        self._checked_out.discard(handle)
        return True

    def _retire(self, handles: List[MbtilesHandle]) -> None:
        """Close ``handles`` and their streams, then free their slots.

        A slot is only given back once its connection is closed, so the number
        of live connections never exceeds ``max_size``.
        """

        if not handles:
            return
        for handle in handles:
            try:
                handle.force_close()
            except MbtilesError as exc:
                LOGGER.warning(
                    "failed to close pooled handle",
                    extra={"path": str(self._path), "error": str(exc)},
                )
        with self._condition:
            self._open_count -= len(handles)
            self._condition.notify(len(handles))


def create_pool(
    path: Path | str,
    *,
    min_idle: int = 1,
    max_idle_time: float = 900.0,
    max_size: int = 1000,
) -> MbtilesPool:
    """Validate ``path`` once and return a pool of handles onto it."""

    mbtiles_path = Path(path)
    connection, metadata = validate_mbtiles(mbtiles_path)
    connection.close()
    LOGGER.info(
        "created mbtiles pool",
        extra={"path": str(mbtiles_path), "max_size": max_size, "max_idle_time": max_idle_time},
    )
    return MbtilesPool(
        mbtiles_path,
        metadata,
        min_idle=min_idle,
        max_idle_time=max_idle_time,
        max_size=max_size,
    )


def create_pool_from_config(config: AccessConfig) -> MbtilesPool:
    """Build a pool for ``config.database_path`` using ``config.pool`` sizing."""

    if config.database_path is None:
        raise ValueError("configuration does not define database_path")
    pool_config: PoolConfig = config.pool
    return create_pool(
        config.database_path,
        min_idle=pool_config.min_idle,
        max_idle_time=pool_config.max_idle_time,
        max_size=pool_config.max_size,
    )
