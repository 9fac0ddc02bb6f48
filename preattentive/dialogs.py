"""
pygame front-end collaborators: the configuration form, the yes/no response
prompt and the modal message box.

ConfigForm and ResponsePrompt are driven by the main loop (handle_event +
draw).  show_message() runs its own loop and blocks until dismissed, like a
modal dialog.
"""

import sys
from collections.abc import Callable
from dataclasses import dataclass

import pygame
import pygame.freetype

from preattentive.staircase import (
    DISTRACTOR_OPTIONS,
    RESPONSE_PROMPT,
    TrialConfig,
    build_trial_config,
)
from preattentive.stimuli import TrialType


@dataclass
class Palette:
    background: tuple = (230, 230, 245)
    text: tuple = (30, 30, 35)
    accent: tuple = (100, 180, 255)


def _blit_centered(surf: pygame.Surface, font: pygame.freetype.Font, text: str,
                   color: tuple, y: int) -> pygame.Rect:
    text_surf, rect = font.render(text, fgcolor=color)
    rect.midtop = (surf.get_width() // 2, y)
    surf.blit(text_surf, rect)
    return rect


# ══════════════════════════════════════════════════════════════════
#  Configuration form
# ══════════════════════════════════════════════════════════════════

class ConfigForm:
    """
    Subject ID / trial type / distractor count.

    UP/DOWN (or TAB) moves between fields, LEFT/RIGHT cycles the option
    fields, ENTER submits.  Invalid input goes to `on_invalid` and the form
    stays open.
    """

    FIELDS = ("Subject ID", "Trial Type", "Number of Distractors")

    def __init__(self, on_invalid: Callable[[str], None],
                 trial_types: tuple = tuple(TrialType),
                 distractor_options: tuple = DISTRACTOR_OPTIONS):
        self.on_invalid = on_invalid
        self.trial_types = tuple(TrialType(t) for t in trial_types)
        self.distractor_options = tuple(distractor_options)
        self.subject_id = ""
        self.type_idx = 0
        self.count_idx = 0
        self.field_idx = 0

    @property
    def trial_type(self) -> TrialType:
        return self.trial_types[self.type_idx]

    @property
    def distractor_count(self) -> int:
        return self.distractor_options[self.count_idx]

    def _cycle(self, delta: int):
        if self.field_idx == 1:
            self.type_idx = (self.type_idx + delta) % len(self.trial_types)
        elif self.field_idx == 2:
            self.count_idx = (self.count_idx + delta) % len(self.distractor_options)

    def submit(self) -> TrialConfig | None:
        try:
            return build_trial_config(self.subject_id, self.trial_type, self.distractor_count)
        except ValueError as e:
            self.on_invalid(str(e))
            return None

    def handle_event(self, event: pygame.event.Event) -> TrialConfig | None:
        if event.type != pygame.KEYDOWN:
            return None
        if event.key == pygame.K_RETURN:
            return self.submit()
        if event.key in (pygame.K_DOWN, pygame.K_TAB):
            self.field_idx = (self.field_idx + 1) % len(self.FIELDS)
        elif event.key == pygame.K_UP:
            self.field_idx = (self.field_idx - 1) % len(self.FIELDS)
        elif event.key == pygame.K_LEFT:
            self._cycle(-1)
        elif event.key == pygame.K_RIGHT:
            self._cycle(1)
        elif self.field_idx == 0:
            if event.key == pygame.K_BACKSPACE:
                self.subject_id = self.subject_id[:-1]
            elif event.unicode and event.unicode.isprintable():
                self.subject_id += event.unicode
        return None

    def draw(self, surf: pygame.Surface, font: pygame.freetype.Font,
             small_font: pygame.freetype.Font, palette: Palette):
        surf.fill(palette.background)
        _blit_centered(surf, font, "Pre-Attentive Processing Experiment",
                       palette.accent, 60)
        values = (self.subject_id, self.trial_type.value, str(self.distractor_count))
        y = 160
        for i, (label, value) in enumerate(zip(self.FIELDS, values)):
            active = i == self.field_idx
            color = palette.accent if active else palette.text
            if i == 0:
                shown = value + ("_" if active else "")
            else:
                shown = f"< {value} >" if active else value
            _blit_centered(surf, font, f"{label}: {shown}", color, y)
            y += 60
        _blit_centered(surf, small_font,
                       "UP/DOWN: field   LEFT/RIGHT: change   ENTER: Start Trial",
                       palette.text, y + 30)


# ══════════════════════════════════════════════════════════════════
#  Response prompt
# ══════════════════════════════════════════════════════════════════

class ResponsePrompt:
    """Yes/no collector: Y or left click = present, N or right click = absent."""

    YES_KEYS = (pygame.K_y,)
    NO_KEYS = (pygame.K_n,)

    def __init__(self, prompt: str = RESPONSE_PROMPT):
        self.prompt = prompt

    def handle_event(self, event: pygame.event.Event) -> bool | None:
        if event.type == pygame.KEYDOWN:
            if event.key in self.YES_KEYS:
                return True
            if event.key in self.NO_KEYS:
                return False
        elif event.type == pygame.MOUSEBUTTONDOWN:
            if event.button == 1:
                return True
            if event.button == 3:
                return False
        return None

    def draw(self, surf: pygame.Surface, font: pygame.freetype.Font,
             small_font: pygame.freetype.Font, palette: Palette):
        surf.fill(palette.background)
        cy = surf.get_height() // 2
        _blit_centered(surf, font, self.prompt, palette.text, cy - 40)
        _blit_centered(surf, small_font, "Y = Yes        N = No", palette.accent, cy + 20)


# ══════════════════════════════════════════════════════════════════
#  Modal message
# ══════════════════════════════════════════════════════════════════

def show_message(surf: pygame.Surface, font: pygame.freetype.Font,
                 small_font: pygame.freetype.Font, palette: Palette, message: str):
    """Block until ENTER, SPACE or a click.  Closing the window exits the process."""
    clock = pygame.time.Clock()
    lines = message.split("\n")
    while True:
        clock.tick(30)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                sys.exit(0)
            if event.type == pygame.MOUSEBUTTONDOWN:
                return
            if event.type == pygame.KEYDOWN and event.key in (pygame.K_RETURN, pygame.K_SPACE):
                return

        surf.fill(palette.background)
        y = surf.get_height() // 2 - len(lines) * 20
        for line in lines:
            _blit_centered(surf, font, line, palette.text, y)
            y += 40
        _blit_centered(surf, small_font, "Press ENTER to continue", palette.accent, y + 20)
        pygame.display.flip()
