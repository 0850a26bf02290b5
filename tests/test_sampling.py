import pytest

from joint_tracker.sampling import SamplingScheduler, collection_interval, should_emit


def test_first_frame_always_emits():
    assert should_emit(0.01, 0.0, 0.1, True) is True
    assert should_emit(0.0, 0.0, 10.0, True) is True


def test_interval_gates_later_frames():
    assert should_emit(0.05, 0.0, 0.1, False) is False
    assert should_emit(0.15, 0.0, 0.1, False) is True
    assert should_emit(0.1, 0.0, 0.1, False) is True


def test_zero_interval_emits_every_frame():
    assert should_emit(0.0, 0.0, 0.0, False) is True


def test_collection_interval_from_rate():
    assert collection_interval(10) == pytest.approx(0.1)
    assert collection_interval(0) == 0.0


def test_collection_interval_ignores_rate_for_files():
    assert collection_interval(30, from_file=True) == 0.0


def test_collection_interval_rejects_negative_rate():
    with pytest.raises(ValueError):
        collection_interval(-1)


def test_scheduler_drops_frames_between_rows():
    sched = SamplingScheduler(0.1)
    times = [0.0, 0.05, 0.12, 0.18, 0.25, 0.26]
    emitted = [t for t in times if sched.tick(t)]
    assert emitted == [0.0, 0.12, 0.25]
    assert sched.last_emitted == 0.25


def test_scheduler_first_tick_emits_even_late():
    sched = SamplingScheduler(5.0)
    assert sched.tick(0.3) is True
    assert sched.tick(0.4) is False
    assert sched.tick(5.4) is True


def test_scheduler_every_frame_when_interval_zero():
    sched = SamplingScheduler(0.0)
    assert all(sched.tick(t) for t in (0.0, 0.0, 0.001, 0.002))


def test_scheduler_rejects_negative_interval():
    with pytest.raises(ValueError):
        SamplingScheduler(-0.5)
