"""
Search-display generation.

Each trial type is a TrialRecipe: one or more distractor groups and a single
target, all drawn from the same small vocabulary of circles, squares and
glyphs.  render() turns a recipe into a RenderFrame (plain data, no pygame),
draw_frame() paints a frame onto a pygame surface.

Placement points are the top-left corner of each stimulus' size x size cell.
"""

import random
from dataclasses import dataclass
from enum import Enum

import pygame
import pygame.freetype

from preattentive.layout import Point, fits, place


# ══════════════════════════════════════════════════════════════════
#  Vocabulary
# ══════════════════════════════════════════════════════════════════

class TrialType(str, Enum):
    COLOR = "Color"
    SHAPE = "Shape"
    COMBO = "Combo"
    SIZE = "Size"
    LETTER = "Letter"


RED = (255, 0, 0)
BLUE = (0, 0, 255)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

CIRCLE = "circle"
SQUARE = "square"
GLYPH = "glyph"

MIN_STIMULUS_SIZE = 20
MAX_STIMULUS_SIZE = 100
SIZE_DIVISOR = 15           # stimulus size = shorter canvas side / 15
LABEL_ORIGIN = (20, 20)     # baseline of the first label line
LABEL_LINE_HEIGHT = 20


@dataclass(frozen=True)
class StimulusSpec:
    kind: str
    label: str                      # plural, used in the distractor label
    color: tuple[int, int, int] = BLACK
    scale: float = 1.0
    glyph: str | None = None

    def size_for(self, base_size: int) -> int:
        return int(base_size * self.scale)


@dataclass(frozen=True)
class TrialRecipe:
    distractors: tuple[StimulusSpec, ...]
    target: StimulusSpec
    target_label: str

    def split(self, n_distractors: int) -> list[int]:
        """
        Distractor count per group: every group but the last gets
        n // len(groups), the last takes the remainder.
        """
        n_groups = len(self.distractors)
        share = n_distractors // n_groups
        return [share] * (n_groups - 1) + [n_distractors - share * (n_groups - 1)]


_BLUE_CIRCLE = StimulusSpec(CIRCLE, "BLUE CIRCLES", BLUE)
_RED_CIRCLE = StimulusSpec(CIRCLE, "RED CIRCLES", RED)
_RED_SQUARE = StimulusSpec(SQUARE, "RED SQUARES", RED)

RECIPES: dict[TrialType, TrialRecipe] = {
    TrialType.COLOR: TrialRecipe((_BLUE_CIRCLE,), _RED_CIRCLE, "RED CIRCLE"),
    TrialType.SHAPE: TrialRecipe((_RED_CIRCLE,), _RED_SQUARE, "RED SQUARE"),
    TrialType.COMBO: TrialRecipe((_RED_SQUARE, _BLUE_CIRCLE), _RED_CIRCLE, "RED CIRCLE"),
    TrialType.SIZE: TrialRecipe(
        (StimulusSpec(CIRCLE, "SMALLER CIRCLES", BLUE),),
        StimulusSpec(CIRCLE, "LARGER CIRCLES", BLUE, scale=1.8),
        "LARGER CIRCLE",
    ),
    TrialType.LETTER: TrialRecipe(
        (StimulusSpec(GLYPH, "LETTER Ps", glyph="P"),),
        StimulusSpec(GLYPH, "LETTER Rs", glyph="R"),
        "LETTER R",
    ),
}


# ══════════════════════════════════════════════════════════════════
#  Frames
# ══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Shape:
    kind: str
    x: int
    y: int
    size: int
    color: tuple[int, int, int]
    glyph: str | None = None
    is_target: bool = False


@dataclass(frozen=True)
class RenderFrame:
    shapes: tuple[Shape, ...]
    title: str
    subtitle: str
    stimulus_size: int


def stimulus_size_for(canvas_width: int, canvas_height: int) -> int:
    size = min(canvas_width, canvas_height) // SIZE_DIVISOR
    return max(MIN_STIMULUS_SIZE, min(MAX_STIMULUS_SIZE, size))


def _place_shape(spec: StimulusSpec, base_size: int, canvas: tuple[int, int],
                 used: list[Point], rng: random.Random,
                 is_target: bool = False) -> Shape:
    size = spec.size_for(base_size)
    pos = place(canvas[0], canvas[1], size, used, rng)
    used.append(pos)
    return Shape(spec.kind, pos.x, pos.y, size, spec.color, spec.glyph, is_target)


def render(
    trial_type: TrialType,
    distractor_count: int,
    target_present: bool,
    canvas_width: int,
    canvas_height: int,
    rng: random.Random | None = None,
) -> RenderFrame:
    """
    Lay out one search display.

    The target replaces one distractor slot, so the frame always holds
    exactly `distractor_count` shapes.  Distractors are placed first and the
    target last.
    """
    trial_type = TrialType(trial_type)
    if distractor_count < 1:
        raise ValueError(f"distractor_count must be positive, got {distractor_count}")

    recipe = RECIPES[trial_type]
    rng = rng or random.Random()
    size = stimulus_size_for(canvas_width, canvas_height)
    largest = max(spec.size_for(size) for spec in (*recipe.distractors, recipe.target))
    if not fits(canvas_width, canvas_height, largest):
        raise ValueError(
            f"canvas {canvas_width}x{canvas_height} too small for {trial_type.value} trial"
        )

    canvas = (canvas_width, canvas_height)
    actual = distractor_count - 1 if target_present else distractor_count
    used: list[Point] = []
    shapes: list[Shape] = []

    counts = recipe.split(actual)
    for spec, n in zip(recipe.distractors, counts):
        for _ in range(n):
            shapes.append(_place_shape(spec, size, canvas, used, rng))

    if target_present:
        shapes.append(_place_shape(recipe.target, size, canvas, used, rng, is_target=True))

    composition = " + ".join(
        f"{n} {spec.label}" for spec, n in zip(recipe.distractors, counts)
    )
    return RenderFrame(
        shapes=tuple(shapes),
        title=f"{trial_type.value} Trial - Target: "
              f"{recipe.target_label if target_present else 'NONE'}",
        subtitle=f"Distractors: {composition}",
        stimulus_size=size,
    )


# ══════════════════════════════════════════════════════════════════
#  Drawing
# ══════════════════════════════════════════════════════════════════

def _draw_glyph(surf: pygame.Surface, shape: Shape, font: pygame.freetype.Font):
    """Centre the glyph in its cell from the measured width and ascent."""
    rect = font.get_rect(shape.glyph, size=shape.size)
    x = shape.x + (shape.size - rect.width) // 2
    baseline = shape.y + (shape.size + rect.y) // 2
    font.render_to(surf, (x, baseline), shape.glyph, BLACK, size=shape.size)


def draw_frame(
    surf: pygame.Surface,
    frame: RenderFrame,
    glyph_font: pygame.freetype.Font,
    label_font: pygame.freetype.Font,
    background: tuple[int, int, int] = WHITE,
    show_labels: bool = True,
):
    """Paint `frame` onto `surf`.  Fonts must have origin=True."""
    surf.fill(background)
    for shape in frame.shapes:
        rect = pygame.Rect(shape.x, shape.y, shape.size, shape.size)
        if shape.kind == CIRCLE:
            pygame.draw.ellipse(surf, shape.color, rect)
            pygame.draw.ellipse(surf, BLACK, rect, 1)
        elif shape.kind == SQUARE:
            pygame.draw.rect(surf, shape.color, rect)
            pygame.draw.rect(surf, BLACK, rect, 1)
        elif shape.kind == GLYPH:
            _draw_glyph(surf, shape, glyph_font)
        else:
            raise ValueError(f"unknown shape kind: {shape.kind!r}")

    if show_labels:
        x, y = LABEL_ORIGIN
        label_font.render_to(surf, (x, y), frame.title, BLACK)
        label_font.render_to(surf, (x, y + LABEL_LINE_HEIGHT), frame.subtitle, BLACK)
