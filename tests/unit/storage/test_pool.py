import sqlite3
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

import pytest

from mbtkit.config import AccessConfig
from mbtkit.core.errors import DoesNotExist, PoolClosedError, PoolTimeoutError
from mbtkit.core.models import DataTile, PoolConfig, TileCoordinate
from mbtkit.storage import MbtilesHandle, MbtilesPool, create_pool, create_pool_from_config
from mbtkit.storage import pool as pool_module
from mbtkit.tiles import StreamState, get_tile, start_tile_stream, write_tile


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_create_pool_validates_path(tmp_path: Path) -> None:
    with pytest.raises(DoesNotExist):
        create_pool(tmp_path / "missing.mbtiles")


def test_pool_defaults(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path) as pool:
        assert pool.max_size == 1000
        assert pool.open_count == 0
        assert pool.metadata.name == "fixture"


def test_checkin_reuses_handle(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=2) as pool:
        first = pool.checkout()
        pool.checkin(first)
        second = pool.checkout()
        assert second is first
        assert pool.open_count == 1
        pool.checkin(second)
        assert pool.idle_count == 1


def test_bounded_under_concurrent_checkouts(monkeypatch: pytest.MonkeyPatch, mbtiles_path: Path) -> None:
    created: List[int] = []
    original = pool_module.validate_mbtiles

    def counting_validate(path):  # type: ignore[no-untyped-def]
        created.append(1)
        return original(path)

    monkeypatch.setattr(pool_module, "validate_mbtiles", counting_validate)
    pool = create_pool(mbtiles_path, max_size=2)
    created.clear()

    lock = threading.Lock()
    observed: List[int] = []
    active = [0]
    peak = [0]

    def work(_: int):  # type: ignore[no-untyped-def]
        with pool.connection() as handle:
            with lock:
                active[0] += 1
                peak[0] = max(peak[0], active[0])
                observed.append(pool.open_count)
            time.sleep(0.01)
            metadata = handle.metadata
            with lock:
                active[0] -= 1
        return metadata

    with ThreadPoolExecutor(max_workers=10) as executor:
        results = list(executor.map(work, range(10)))

    assert max(observed) <= 2
    assert peak[0] <= 2
    assert len(created) <= 2
    assert all(metadata == results[0] for metadata in results)
    pool.close()
    assert pool.open_count == 0


def test_each_handle_has_its_own_statement(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=2) as pool:
        first = pool.checkout()
        second = pool.checkout()
        assert first.read_statement is not second.read_statement
        assert first.connection is not second.connection
        pool.checkin(first)
        pool.checkin(second)


def test_checkout_times_out_when_saturated(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=1) as pool:
        held = pool.checkout()
        with pytest.raises(PoolTimeoutError):
            pool.checkout(timeout=0.05)
        pool.checkin(held)


def test_blocked_checkout_wakes_on_checkin(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=1) as pool:
        held = pool.checkout()
        timer = threading.Timer(0.05, pool.checkin, args=(held,))
        timer.start()
        handle = pool.checkout(timeout=5)
        timer.join()
        assert handle is held
        pool.checkin(handle)


def test_idle_handles_expire(mbtiles_path: Path) -> None:
    clock = FakeClock()
    pool = MbtilesPool(
        mbtiles_path,
        create_pool(mbtiles_path).metadata,
        min_idle=0,
        max_idle_time=10,
        max_size=4,
        clock=clock,
    )
    first, second = pool.checkout(), pool.checkout()
    pool.checkin(first)
    pool.checkin(second)
    assert pool.idle_count == 2

    clock.now += 11
    fresh = pool.checkout()

    assert fresh is not first and fresh is not second
    assert first.closed and second.closed
    assert pool.open_count == 1
    pool.checkin(fresh)
    pool.close()


def test_min_idle_handles_survive_expiry(mbtiles_path: Path) -> None:
    clock = FakeClock()
    pool = MbtilesPool(
        mbtiles_path,
        create_pool(mbtiles_path).metadata,
        min_idle=1,
        max_idle_time=10,
        max_size=4,
        clock=clock,
    )
    first, second = pool.checkout(), pool.checkout()
    pool.checkin(first)
    clock.now += 1
    pool.checkin(second)

    clock.now += 20
    kept = pool.checkout()

    assert kept is second
    assert first.closed
    assert pool.open_count == 1
    pool.checkin(kept)
    pool.close()


def test_failed_block_discards_handle(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=1) as pool:
        with pytest.raises(RuntimeError):
            with pool.connection() as handle:
                raise RuntimeError("boom")
        assert handle.closed
        assert pool.open_count == 0
        assert pool.checkout() is not handle


def test_closed_pool_refuses_checkout(mbtiles_path: Path) -> None:
    pool = create_pool(mbtiles_path)
    held = pool.checkout()
    pool.close()

    with pytest.raises(PoolClosedError):
        pool.checkout()

    pool.checkin(held)
    assert held.closed
    assert pool.open_count == 0


def test_run_and_tile_roundtrip_across_handles(mbtiles_path: Path) -> None:
    tile = TileCoordinate(2, 1, 3)
    with create_pool(mbtiles_path, max_size=2) as pool:
        pool.run(lambda handle: write_tile(handle, DataTile(tile, b"pooled")))

        def read(handle: MbtilesHandle):  # type: ignore[no-untyped-def]
            return get_tile(handle, tile)

        assert pool.run(read) == b"pooled"


def test_create_pool_from_config(mbtiles_path: Path) -> None:
    config = AccessConfig(
        database_path=mbtiles_path,
        pool=PoolConfig(min_idle=0, max_idle_time=5.0, max_size=3),
    )
    with create_pool_from_config(config) as pool:
        assert pool.max_size == 3
        assert pool.path == mbtiles_path


def test_create_pool_from_config_requires_path() -> None:
    with pytest.raises(ValueError):
        create_pool_from_config(AccessConfig())


def test_failed_block_with_open_stream_closes_connection(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=1) as pool:
        with pytest.raises(RuntimeError):
            with pool.connection() as handle:
                stream = start_tile_stream(handle)
                connection = handle.connection
                raise RuntimeError("boom")

        assert handle.closed
        assert stream.state is StreamState.CLOSED
        with pytest.raises(sqlite3.ProgrammingError):
            connection.execute("SELECT 1")
        assert pool.open_count == 0

        replacement = pool.checkout(timeout=1)
        assert replacement is not handle
        assert pool.open_count == 1
        pool.checkin(replacement)


def test_closing_pool_reclaims_idle_handle_with_open_stream(mbtiles_path: Path) -> None:
    pool = create_pool(mbtiles_path, max_size=1)
    handle = pool.checkout()
    stream = start_tile_stream(handle)
    pool.checkin(handle)

    pool.close()

    assert handle.closed
    assert stream.state is StreamState.CLOSED
    assert pool.open_count == 0


def test_expired_handle_with_open_stream_frees_slot(mbtiles_path: Path) -> None:
    clock = FakeClock()
    pool = MbtilesPool(
        mbtiles_path,
        create_pool(mbtiles_path).metadata,
        min_idle=0,
        max_idle_time=10,
        max_size=1,
        clock=clock,
    )
    stale = pool.checkout()
    start_tile_stream(stale)
    pool.checkin(stale)

    clock.now += 11
    fresh = pool.checkout(timeout=0)

    assert stale.closed
    assert fresh is not stale
    assert pool.open_count == 1
    pool.checkin(fresh)
    pool.close()


def test_double_checkin_is_ignored(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=2) as pool:
        handle = pool.checkout()
        pool.checkin(handle)
        pool.checkin(handle)

        assert pool.idle_count == 1
        assert pool.open_count == 1


def test_double_discard_is_ignored(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=2) as pool:
        handle = pool.checkout()
        pool.discard(handle)
        pool.discard(handle)
        pool.checkin(handle)

        assert handle.closed
        assert pool.open_count == 0
        assert pool.idle_count == 0


def test_foreign_handle_is_ignored(mbtiles_path: Path) -> None:
    with create_pool(mbtiles_path, max_size=1) as pool, create_pool(mbtiles_path) as other:
        foreign = other.checkout()
        pool.checkin(foreign)
        pool.discard(foreign)

        assert not foreign.closed
        assert pool.open_count == 0
        assert pool.idle_count == 0
        other.checkin(foreign)
