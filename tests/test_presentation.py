import random

import pytest

from preattentive.presentation import TrialPresentation
from preattentive.stimuli import TrialType


# ── Scheduler ─────────────────────────────────────────────────────────────

def test_timer_fires_once_at_deadline(clock, scheduler):
    fired = []
    scheduler.call_later(150, lambda: fired.append(clock()))

    clock.advance(149)
    assert scheduler.run_due() == 0
    clock.advance(1)
    assert scheduler.run_due() == 1
    assert fired == [150]

    clock.advance(1000)
    assert scheduler.run_due() == 0


def test_timers_fire_in_deadline_then_insertion_order(clock, scheduler):
    fired = []
    scheduler.call_later(20, lambda: fired.append("b"))
    scheduler.call_later(10, lambda: fired.append("a"))
    scheduler.call_later(20, lambda: fired.append("c"))
    clock.advance(10)
    scheduler.run_due()
    assert fired == ["a"]

    clock.advance(40)
    scheduler.run_due()
    assert fired == ["a", "b", "c"]


def test_callback_may_arm_a_new_timer(clock, scheduler):
    fired = []
    scheduler.call_later(10, lambda: scheduler.call_later(10, lambda: fired.append(clock())))
    clock.advance(10)
    scheduler.run_due()
    assert fired == []
    clock.advance(10)
    scheduler.run_due()
    assert fired == [20]


def test_negative_delay_rejected(scheduler):
    with pytest.raises(ValueError):
        scheduler.call_later(-1, lambda: None)


# ── TrialPresentation ─────────────────────────────────────────────────────

def _presentation(scheduler, closes, seed=42, interval=150):
    return TrialPresentation(TrialType.COLOR, 20, interval, scheduler,
                             on_close=closes.append, rng=random.Random(seed))


def test_target_presence_is_drawn_at_construction(scheduler):
    expected = random.Random(42).random() < 0.5
    p = _presentation(scheduler, [])
    assert p.target_present is expected
    assert p.frame is None
    assert not p.visible


def test_target_presence_varies_across_trials(scheduler):
    rng = random.Random(0)
    flags = {
        TrialPresentation(TrialType.SHAPE, 10, 150, scheduler, lambda _: None, rng).target_present
        for _ in range(50)
    }
    assert flags == {True, False}


def test_frame_visible_for_exactly_the_interval(clock, scheduler):
    closes = []
    p = _presentation(scheduler, closes, interval=175)
    frame = p.show((1280, 800))

    assert p.visible
    assert p.onset_ms == 0
    assert any(s.is_target for s in frame.shapes) is p.target_present
    assert len(frame.shapes) == 20

    clock.advance(174)
    scheduler.run_due()
    assert p.visible and closes == []

    clock.advance(1)
    scheduler.run_due()
    assert not p.visible
    assert p.offset_ms == 175
    assert closes == [p.target_present]


def test_presentation_is_single_shot(clock, scheduler):
    closes = []
    p = _presentation(scheduler, closes)
    p.show((1280, 800))
    with pytest.raises(RuntimeError):
        p.show((1280, 800))

    clock.advance(150)
    scheduler.run_due()
    with pytest.raises(RuntimeError):
        p.show((1280, 800))
    assert len(closes) == 1
