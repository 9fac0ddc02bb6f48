"""
Non-overlapping stimulus placement.

A placement is a rejection-sampling search: draw a candidate point inside the
canvas margins and accept it if it keeps a minimum distance from every point
already placed.  The search gives up after MAX_ATTEMPTS and keeps the last
candidate, so a crowded display degrades to overlapping stimuli instead of
failing the trial.
"""

import math
import random
from typing import NamedTuple


MAX_ATTEMPTS = 100
EDGE_PADDING = 20          # px kept clear between a stimulus cell and the margin
MIN_SPACING_FACTOR = 1.5   # min centre distance, in stimulus sizes


class Point(NamedTuple):
    x: int
    y: int


def margin_for(stimulus_size: int) -> int:
    return stimulus_size + EDGE_PADDING


def fits(canvas_width: int, canvas_height: int, stimulus_size: int) -> bool:
    """True when the canvas leaves a non-empty sampling range on both axes."""
    margin = margin_for(stimulus_size)
    return canvas_width > 2 * margin and canvas_height > 2 * margin


def _sample(canvas_width: int, canvas_height: int, margin: int,
            rng: random.Random) -> Point:
    return Point(
        rng.randrange(margin, canvas_width - margin),
        rng.randrange(margin, canvas_height - margin),
    )


def place(
    canvas_width: int,
    canvas_height: int,
    stimulus_size: int,
    placed: list[Point],
    rng: random.Random | None = None,
) -> Point:
    """
    Pick a position for one stimulus of `stimulus_size` px.

    `placed` is only read; the caller appends the returned point itself.
    Raises ValueError when the canvas is too small for the margins.
    """
    if not fits(canvas_width, canvas_height, stimulus_size):
        raise ValueError(
            f"canvas {canvas_width}x{canvas_height} too small for "
            f"stimulus size {stimulus_size}"
        )
    rng = rng or random
    margin = margin_for(stimulus_size)
    min_dist = stimulus_size * MIN_SPACING_FACTOR

    candidate = None
    for _ in range(MAX_ATTEMPTS):
        candidate = _sample(canvas_width, canvas_height, margin, rng)
        if all(math.dist(candidate, p) >= min_dist for p in placed):
            return candidate

    # Budget exhausted: the last candidate is kept even though it overlaps.
    return candidate
