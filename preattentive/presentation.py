"""
Timed stimulus presentation.

Scheduler holds single-shot timers that the main loop services with
run_due(); there is no way to cancel a timer once armed.  TrialPresentation
shows one search display for a fixed number of milliseconds and then hands
the target-presence flag to its close callback.
"""

import heapq
import itertools
import random
from collections.abc import Callable

import pygame

from preattentive.stimuli import RenderFrame, TrialType, render


class Scheduler:
    """Single-shot millisecond timers fired from the main loop."""

    def __init__(self, clock: Callable[[], int] | None = None):
        self._clock = clock or pygame.time.get_ticks
        self._timers: list[tuple[int, int, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> int:
        return self._clock()

    def call_later(self, delay_ms: int, callback: Callable[[], None]):
        if delay_ms < 0:
            raise ValueError(f"delay must be non-negative, got {delay_ms}")
        heapq.heappush(self._timers, (self.now() + delay_ms, next(self._seq), callback))

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed, oldest first."""
        fired = 0
        while self._timers and self._timers[0][0] <= self.now():
            _, _, callback = heapq.heappop(self._timers)
            callback()
            fired += 1
        return fired


class TrialPresentation:
    """
    One search display, visible for exactly `display_interval_ms`.

    Target presence is drawn at construction.  show() renders the frame and
    arms the close timer; the close is the only terminal transition and it
    calls `on_close(target_present)` exactly once.
    """

    def __init__(
        self,
        trial_type: TrialType,
        distractor_count: int,
        display_interval_ms: int,
        scheduler: Scheduler,
        on_close: Callable[[bool], None],
        rng: random.Random | None = None,
    ):
        self.trial_type = TrialType(trial_type)
        self.distractor_count = distractor_count
        self.display_interval_ms = display_interval_ms
        self.scheduler = scheduler
        self.on_close = on_close
        self.rng = rng or random.Random()

        self.target_present: bool = self.rng.random() < 0.5
        self.frame: RenderFrame | None = None
        self.onset_ms: int | None = None
        self.offset_ms: int | None = None
        self._shown = False

    @property
    def visible(self) -> bool:
        return self.frame is not None

    def show(self, canvas_size: tuple[int, int]) -> RenderFrame:
        if self._shown:
            raise RuntimeError("a presentation can only be shown once")
        self._shown = True
        width, height = canvas_size
        self.frame = render(
            self.trial_type, self.distractor_count, self.target_present,
            width, height, self.rng,
        )
        self.onset_ms = self.scheduler.now()
        self.scheduler.call_later(self.display_interval_ms, self._close)
        return self.frame

    def _close(self):
        self.frame = None
        self.offset_ms = self.scheduler.now()
        self.on_close(self.target_present)
