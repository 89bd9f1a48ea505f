import asyncio
import pytest

from habitlog.errors import ConstraintViolation, TransientIO
from habitlog.sync.coordinator import SaveCoordinator


class Recorder:
    def __init__(self):
        self.persisted = []
        self.saved = []
        self.failed = []
        self.gate = None
        self.errors = []

    async def persist(self, snapshot):
        error = self.errors.pop(0) if self.errors else None
        if self.gate is not None:
            await self.gate.wait()
        self.persisted.append(snapshot)
        if error is not None:
            raise error

    def on_success(self, snapshot, revision):
        self.saved.append((snapshot, revision))

    def on_failure(self, snapshot, exc):
        self.failed.append((snapshot, exc))

    def schedule(self, coordinator, entity_id, snapshot):
        return coordinator.schedule(
            entity_id, snapshot, self.persist, on_success=self.on_success, on_failure=self.on_failure
        )


@pytest.mark.asyncio
async def test_burst_of_edits_is_one_write_with_last_snapshot():
    coord = SaveCoordinator(delay=0.02)
    rec = Recorder()
    for weight in (10, 20, 30):
        rec.schedule(coord, "a", weight)
    await coord.wait_idle()
    assert rec.persisted == [30]
    assert rec.saved == [(30, 3)]


@pytest.mark.asyncio
async def test_saving_ids_cover_pending_and_inflight():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.gate = asyncio.Event()
    rec.schedule(coord, "a", 1)
    assert coord.saving_ids == {"a"}
    assert coord.has_pending("a")
    await asyncio.sleep(0.05)
    # timer fired, call still held
    assert not coord.has_pending("a")
    assert coord.saving_ids == {"a"}
    rec.gate.set()
    await coord.wait_idle()
    assert coord.saving_ids == frozenset()


@pytest.mark.asyncio
async def test_ids_are_independent():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.schedule(coord, "a", 1)
    rec.schedule(coord, "b", 2)
    await coord.wait_idle()
    assert sorted(rec.persisted) == [1, 2]


@pytest.mark.asyncio
async def test_current_failure_reaches_rollback():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.errors = [ConstraintViolation("Muscle group not found")]
    rec.schedule(coord, "a", 5)
    await coord.wait_idle()
    assert rec.saved == []
    [(snapshot, exc)] = rec.failed
    assert snapshot == 5
    assert exc.message == "Muscle group not found"


@pytest.mark.asyncio
async def test_unexpected_error_is_reported_as_transient():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.errors = [RuntimeError("boom")]
    rec.schedule(coord, "a", 5)
    await coord.wait_idle()
    [(_, exc)] = rec.failed
    assert isinstance(exc, TransientIO)


@pytest.mark.asyncio
async def test_stale_failure_does_not_roll_back_newer_edit():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.gate = asyncio.Event()
    rec.errors = [ConstraintViolation("old call failed")]
    rec.schedule(coord, "a", "old")
    [first] = coord.flush("a")
    rec.schedule(coord, "a", "new")
    rec.gate.set()
    await first
    await coord.wait_idle()
    assert rec.failed == []
    assert rec.saved == [("new", 2)]


@pytest.mark.asyncio
async def test_bump_marks_inflight_result_stale():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.gate = asyncio.Event()
    rec.errors = [ConstraintViolation("nope")]
    rec.schedule(coord, "a", 1)
    coord.flush("a")
    coord.bump("a")
    rec.gate.set()
    await coord.wait_idle()
    assert rec.failed == []


@pytest.mark.asyncio
async def test_flush_fires_without_waiting_for_the_window():
    coord = SaveCoordinator(delay=60)
    rec = Recorder()
    rec.schedule(coord, "a", 1)
    tasks = coord.flush()
    await asyncio.gather(*tasks)
    assert rec.persisted == [1]
    assert coord.saving_ids == frozenset()


@pytest.mark.asyncio
async def test_forget_drops_pending_write_and_results():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.schedule(coord, "a", 1)
    assert coord.forget("a") == []
    await asyncio.sleep(0.05)
    assert rec.persisted == []
    assert coord.revision("a") == 0


@pytest.mark.asyncio
async def test_forget_returns_inflight_calls():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.gate = asyncio.Event()
    rec.schedule(coord, "a", 1)
    coord.flush("a")
    inflight = coord.forget("a")
    assert len(inflight) == 1
    rec.gate.set()
    await asyncio.wait(inflight)
    # result of a forgotten id is not reported
    assert rec.saved == []


@pytest.mark.asyncio
async def test_close_cancels_every_timer():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    rec.schedule(coord, "a", 1)
    rec.schedule(coord, "b", 2)
    coord.close()
    await asyncio.sleep(0.05)
    assert rec.persisted == []
    assert coord.saving_ids == frozenset()


@pytest.mark.asyncio
async def test_idle_ids_are_not_tracked():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    for n in range(20):
        rec.schedule(coord, f"set-{n}", n)
    await coord.wait_idle()
    assert len(rec.persisted) == 20
    assert coord._revisions == {}
    assert coord.revision("set-3") == 0


@pytest.mark.asyncio
async def test_revisions_keep_rising_after_forget():
    coord = SaveCoordinator(delay=0.01)
    rec = Recorder()
    first = rec.schedule(coord, "a", 1)
    coord.forget("a")
    assert rec.schedule(coord, "a", 2) > first
    await coord.wait_idle()
    assert rec.saved == [(2, 2)]
