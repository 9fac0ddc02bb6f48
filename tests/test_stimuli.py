import random

import pygame
import pygame.freetype
import pytest

from preattentive.stimuli import (
    BLACK,
    BLUE,
    CIRCLE,
    GLYPH,
    RECIPES,
    RED,
    SQUARE,
    WHITE,
    TrialType,
    draw_frame,
    render,
    stimulus_size_for,
)


def _count(frame, kind, color):
    return sum(1 for s in frame.shapes if s.kind == kind and s.color == color)


@pytest.mark.parametrize("trial_type", list(TrialType))
@pytest.mark.parametrize("count", [10, 21, 50])
@pytest.mark.parametrize("present", [True, False])
def test_shape_total_equals_distractor_count(trial_type, count, present):
    frame = render(trial_type, count, present, 1920, 1080, random.Random(count))
    assert len(frame.shapes) == count
    assert sum(s.is_target for s in frame.shapes) == (1 if present else 0)


@pytest.mark.parametrize("trial_type", list(TrialType))
def test_target_is_drawn_last(trial_type):
    frame = render(trial_type, 10, True, 1280, 800, random.Random(3))
    assert frame.shapes[-1].is_target
    assert not any(s.is_target for s in frame.shapes[:-1])


def test_combo_scenario_with_target():
    frame = render(TrialType.COMBO, 21, True, 1920, 1080, random.Random(7))
    distractors = [s for s in frame.shapes if not s.is_target]
    target = frame.shapes[-1]

    assert sum(1 for s in distractors if s.kind == SQUARE and s.color == RED) == 10
    assert sum(1 for s in distractors if s.kind == CIRCLE and s.color == BLUE) == 10
    assert (target.kind, target.color) == (CIRCLE, RED)
    assert len(frame.shapes) == 21
    assert frame.subtitle == "Distractors: 10 RED SQUARES + 10 BLUE CIRCLES"


def test_combo_odd_split_gives_remainder_to_blue_circles():
    frame = render(TrialType.COMBO, 21, False, 1920, 1080, random.Random(7))
    assert _count(frame, SQUARE, RED) == 10
    assert _count(frame, CIRCLE, BLUE) == 11
    assert frame.title == "Combo Trial - Target: NONE"


def test_color_trial():
    frame = render(TrialType.COLOR, 10, True, 1280, 800, random.Random(1))
    assert _count(frame, CIRCLE, BLUE) == 9
    assert _count(frame, CIRCLE, RED) == 1
    assert frame.title == "Color Trial - Target: RED CIRCLE"
    assert frame.subtitle == "Distractors: 9 BLUE CIRCLES"


def test_shape_trial():
    frame = render(TrialType.SHAPE, 20, True, 1280, 800, random.Random(1))
    assert _count(frame, CIRCLE, RED) == 19
    assert _count(frame, SQUARE, RED) == 1
    assert frame.title == "Shape Trial - Target: RED SQUARE"
    assert frame.subtitle == "Distractors: 19 RED CIRCLES"


def test_size_trial_target_is_larger():
    frame = render(TrialType.SIZE, 10, True, 1500, 900, random.Random(1))
    assert frame.stimulus_size == 60
    sizes = sorted({s.size for s in frame.shapes})
    assert sizes == [60, 108]
    assert frame.shapes[-1].size == 108
    assert all(s.color == BLUE for s in frame.shapes)
    assert frame.title == "Size Trial - Target: LARGER CIRCLE"
    assert frame.subtitle == "Distractors: 9 SMALLER CIRCLES"


def test_letter_trial():
    frame = render(TrialType.LETTER, 30, False, 1280, 800, random.Random(1))
    assert {s.kind for s in frame.shapes} == {GLYPH}
    assert {s.glyph for s in frame.shapes} == {"P"}
    assert frame.title == "Letter Trial - Target: NONE"
    assert frame.subtitle == "Distractors: 30 LETTER Ps"

    frame = render(TrialType.LETTER, 30, True, 1280, 800, random.Random(1))
    assert frame.shapes[-1].glyph == "R"
    assert frame.title == "Letter Trial - Target: LETTER R"


def test_accepts_plain_string_trial_type():
    frame = render("Shape", 10, False, 1280, 800, random.Random(0))
    assert frame.title.startswith("Shape Trial")


@pytest.mark.parametrize("size,expected", [
    ((200, 200), 20),
    ((3000, 3000), 100),
    ((1200, 900), 60),
    ((1920, 1080), 72),
])
def test_stimulus_size_is_clamped(size, expected):
    assert stimulus_size_for(*size) == expected


def test_split_sums_to_total():
    for n in range(0, 60):
        assert sum(RECIPES[TrialType.COMBO].split(n)) == n
        assert RECIPES[TrialType.COMBO].split(n)[0] == n // 2


def test_rejects_bad_input():
    with pytest.raises(ValueError):
        render(TrialType.COLOR, 0, False, 1280, 800)
    with pytest.raises(ValueError):
        render("Texture", 10, False, 1280, 800)
    # Size target needs a 56px margin on each side
    with pytest.raises(ValueError):
        render(TrialType.SIZE, 10, True, 110, 110)


# ── drawing ───────────────────────────────────────────────────────────────

@pytest.fixture
def fonts():
    pygame.freetype.init()
    glyph = pygame.freetype.Font(None, 28)
    label = pygame.freetype.Font(None, 14)
    for f in (glyph, label):
        f.origin = True
    yield glyph, label
    pygame.freetype.quit()


def _centre(shape):
    return shape.x + shape.size // 2, shape.y + shape.size // 2


def test_draw_frame_paints_target_fill_and_outline(fonts):
    surf = pygame.Surface((800, 600))
    frame = render(TrialType.COLOR, 10, True, 800, 600, random.Random(5))
    draw_frame(surf, frame, *fonts)

    target = frame.shapes[-1]
    assert tuple(surf.get_at(_centre(target)))[:3] == RED
    # the outline touches the left edge of the bounding square near mid-height
    mid = target.y + target.size // 2
    edge = {tuple(surf.get_at((target.x, y)))[:3] for y in range(mid - 2, mid + 3)}
    assert BLACK in edge


def test_draw_frame_square_target(fonts):
    surf = pygame.Surface((800, 600))
    frame = render(TrialType.SHAPE, 10, True, 800, 600, random.Random(5))
    draw_frame(surf, frame, *fonts, show_labels=False)
    target = frame.shapes[-1]
    assert tuple(surf.get_at(_centre(target)))[:3] == RED
    assert tuple(surf.get_at((target.x, target.y)))[:3] == BLACK


def test_draw_frame_glyphs_land_in_their_cells(fonts):
    surf = pygame.Surface((800, 600))
    frame = render(TrialType.LETTER, 10, True, 800, 600, random.Random(5))
    draw_frame(surf, frame, *fonts, show_labels=False)
    target = frame.shapes[-1]
    cell = surf.subsurface(pygame.Rect(target.x, target.y, target.size, target.size))
    colours = {tuple(cell.get_at((x, y)))[:3]
               for x in range(target.size) for y in range(target.size)}
    assert BLACK in colours
    assert WHITE in colours
