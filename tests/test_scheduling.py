from conftest import FakeClock

from schematic_canvas.scheduling import RenderScheduler, Throttle


class Counter:
    def __init__(self):
        self.calls = 0

    def render(self):
        self.calls += 1


def test_requests_within_a_frame_coalesce():
    frames = []
    scheduler = RenderScheduler(frames.append)
    counter = Counter()
    assert scheduler.schedule(counter.render)
    # bound methods are recreated on each access but compare equal
    assert not scheduler.schedule(counter.render)
    assert not scheduler.schedule(counter.render)
    assert len(frames) == 1
    frames[0]()
    assert counter.calls == 1
    assert scheduler.pending_count == 0
    assert scheduler.frames_flushed == 1


def test_distinct_callbacks_share_one_frame():
    frames = []
    scheduler = RenderScheduler(frames.append)
    first, second = Counter(), Counter()
    scheduler.schedule(first.render)
    scheduler.schedule(second.render)
    assert len(frames) == 1
    scheduler.flush()
    assert (first.calls, second.calls) == (1, 1)


def test_new_frame_after_flush():
    frames = []
    scheduler = RenderScheduler(frames.append)
    counter = Counter()
    scheduler.schedule(counter.render)
    scheduler.flush()
    scheduler.schedule(counter.render)
    assert len(frames) == 2
    assert scheduler.frame_requested


def test_cancelled_callback_does_not_run():
    frames = []
    scheduler = RenderScheduler(frames.append)
    counter = Counter()
    scheduler.schedule(counter.render)
    scheduler.cancel(counter.render)
    scheduler.flush()
    assert counter.calls == 0
    assert scheduler.frames_flushed == 0


def test_throttle_limits_rate_and_keeps_latest():
    clock = FakeClock()
    deferred = []
    seen = []
    throttle = Throttle(seen.append, interval_ms=16, clock=clock, schedule=lambda ms, fn: deferred.append((ms, fn)))

    assert throttle(1)
    clock.advance(5)
    assert not throttle(2)
    clock.advance(5)
    assert not throttle(3)
    assert seen == [1]
    assert deferred[-1][0] == 6

    # only the latest deferred call fires
    clock.advance(6)
    for _, fire in deferred:
        fire()
    assert seen == [1, 3]
    assert not throttle.has_pending

    clock.advance(20)
    assert throttle(4)
    assert seen == [1, 3, 4]


def test_throttle_cancel_drops_pending_call():
    clock = FakeClock()
    deferred = []
    seen = []
    throttle = Throttle(seen.append, interval_ms=16, clock=clock, schedule=lambda ms, fn: deferred.append(fn))
    throttle("a")
    throttle("b")
    throttle.cancel()
    deferred[-1]()
    assert seen == ["a"]
