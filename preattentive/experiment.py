"""
Pre-attentive visual search experiment: estimates how long a search display
must stay on screen for a present/absent judgment to be reliable.

Staircase procedure
───────────────────
Every trial shows a full-screen display of distractors, with the target
replacing one of them on a random half of the trials, for the current
display interval.  After the display disappears the subject answers "was the
target present?".

  • incorrect answer → interval + 25 ms, correct streak reset
  • 10 correct in a row → the interval is recorded and the staircase resets
  • 100 answers without such a streak → the session ends unrecorded

Trial types
───────────
  Color   red circle among blue circles
  Shape   red square among red circles
  Combo   red circle among red squares and blue circles
  Size    large blue circle among small blue circles
  Letter  R among Ps

Output
──────
  • data_file  – "subject, type, distractors, interval" per successful staircase
  • log_dir/   – JSONL event log per run: experiment_header, session_start,
                 trial_start, trial_response, session_complete,
                 session_exhausted, save_error, experiment_footer
"""

import random
from datetime import datetime
from functools import partial

import pygame
import pygame.freetype

from preattentive.dialogs import ConfigForm, Palette, ResponsePrompt, show_message
from preattentive.presentation import Scheduler
from preattentive.records import EventLog, append_session_record
from preattentive.staircase import (
    DISTRACTOR_OPTIONS,
    Phase,
    StaircaseController,
    StaircaseRules,
    TrialConfig,
)
from preattentive.stimuli import WHITE, TrialType, draw_frame


# ══════════════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════════════

CONFIG = {
    # ── Staircase ─────────────────────────────────────────────────────────
    "initial_interval_ms": 150,
    "interval_step_ms": 25,      # added after every incorrect answer
    "success_streak": 10,        # consecutive correct answers that end a staircase
    "max_trials": 100,           # hard cap per staircase
    "inter_trial_pause_ms": 1000,

    # ── Form options ──────────────────────────────────────────────────────
    "trial_types": [t.value for t in TrialType],
    "distractor_options": list(DISTRACTOR_OPTIONS),

    # ── Display ───────────────────────────────────────────────────────────
    "fullscreen": True,
    "screen_width": 1280,        # used when fullscreen is False
    "screen_height": 800,
    "fps": 120,                  # main loop rate; bounds presentation timing error
    "stimulus_bg_color": WHITE,
    "bg_color": (230, 230, 245),
    "text_color": (30, 30, 35),
    "accent_color": (100, 180, 255),
    "font_name": "Arial",
    "font_size_text": 28,
    "font_size_label": 14,
    "font_size_small": 16,
    "show_labels": True,         # trial-type/target labels in the stimulus corner

    # ── Files ─────────────────────────────────────────────────────────────
    "data_file": "experiment_data.txt",
    "log_dir": "logs",

    # ── Reproducibility ───────────────────────────────────────────────────
    "rng_seed": None,            # int to reproduce exactly; None = auto-generate
}


def rules_from_config(config: dict) -> StaircaseRules:
    return StaircaseRules(
        initial_interval_ms=config.get("initial_interval_ms", 150),
        step_ms=config.get("interval_step_ms", 25),
        success_streak=config.get("success_streak", 10),
        max_trials=config.get("max_trials", 100),
        pause_ms=config.get("inter_trial_pause_ms", 1000),
    )


# ══════════════════════════════════════════════════════════════════
#  Experiment
# ══════════════════════════════════════════════════════════════════

class Experiment:
    def __init__(self, config: dict):
        self.config = config
        self.rules = rules_from_config(config)

        # ── RNG ───────────────────────────────────────────────────────────
        self.seed: int = config.get("rng_seed") or random.randrange(0, 2**32)
        self.rng = random.Random(self.seed)

        # ── Display ───────────────────────────────────────────────────────
        if config.get("fullscreen", True):
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode(
                (config["screen_width"], config["screen_height"])
            )
        pygame.display.set_caption("Pre-Attentive Processing Experiment")
        self.clock = pygame.time.Clock()
        self.palette = Palette(
            background=config["bg_color"],
            text=config["text_color"],
            accent=config["accent_color"],
        )

        # ── Fonts ─────────────────────────────────────────────────────────
        name = config.get("font_name", "Arial")
        self.font_text = pygame.freetype.SysFont(name, config["font_size_text"])
        self.font_small = pygame.freetype.SysFont(name, config["font_size_small"])
        self.font_label = pygame.freetype.SysFont(name, config["font_size_label"])
        self.font_glyph = pygame.freetype.SysFont(name, config["font_size_text"], bold=True)
        for f in (self.font_text, self.font_small, self.font_label, self.font_glyph):
            f.origin = True

        # ── Collaborators ─────────────────────────────────────────────────
        self.scheduler = Scheduler()
        self.form = ConfigForm(
            on_invalid=self.notify,
            trial_types=tuple(config["trial_types"]),
            distractor_options=tuple(config["distractor_options"]),
        )
        self.prompt = ResponsePrompt()
        self.controller: StaircaseController | None = None

        # ── Logging ───────────────────────────────────────────────────────
        self.results: list[dict] = []
        self.event_log = EventLog.create(config.get("log_dir", "logs"), config, self.seed)

    # ── collaborators ─────────────────────────────────────────────────────

    def notify(self, message: str):
        show_message(self.screen, self.font_text, self.font_small, self.palette, message)

    def start_session(self, trial_config: TrialConfig):
        self.controller = StaircaseController(
            trial_config,
            self.scheduler,
            self.screen.get_size(),
            record_sink=partial(append_session_record, self.config["data_file"]),
            notify=self.notify,
            rules=self.rules,
            rng=self.rng,
            event_log=self.event_log,
        )
        self.controller.start()

    def _end_session(self):
        sc = self.controller
        last = sc.records[-1] if sc.records else None
        self.results.append({
            "subject_id": sc.config.subject_id,
            "trial_type": sc.config.trial_type.value,
            "distractor_count": sc.config.distractor_count,
            "verdict": sc.verdict.value,
            "trials": sc.trial_index,
            "final_interval_ms": (last.final_display_interval_ms if last
                                  else sc.state.display_interval_ms),
        })
        self.controller = None

    # ── main loop ─────────────────────────────────────────────────────────

    def run(self):
        running = True

        while running:
            self.clock.tick(self.config.get("fps", 120))

            # ── events ────────────────────────────────────────────────────
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    break
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                    break

                if self.controller is None:
                    trial_config = self.form.handle_event(event)
                    if trial_config is not None:
                        self.start_session(trial_config)
                elif self.controller.phase is Phase.AWAITING_RESPONSE:
                    answer = self.prompt.handle_event(event)
                    if answer is not None:
                        self.controller.submit_response(answer)

            if not running:
                break

            # ── timers ────────────────────────────────────────────────────
            self.scheduler.run_due()
            if self.controller is not None and self.controller.finished:
                self._end_session()

            # ── draw ──────────────────────────────────────────────────────
            self._draw()
            pygame.display.flip()

        pygame.quit()
        self._print_results()
        self.event_log.log(
            "experiment_footer",
            sessions=len(self.results),
            successful=sum(1 for r in self.results if r["verdict"] == "success"),
            results=self.results,
        )

    def _draw(self):
        sc = self.controller
        if sc is None:
            self.form.draw(self.screen, self.font_text, self.font_small, self.palette)
        elif sc.phase is Phase.PRESENTING and sc.presentation and sc.presentation.visible:
            draw_frame(self.screen, sc.presentation.frame, self.font_glyph, self.font_label,
                       background=self.config["stimulus_bg_color"],
                       show_labels=self.config.get("show_labels", True))
        elif sc.phase is Phase.AWAITING_RESPONSE:
            self.prompt.draw(self.screen, self.font_text, self.font_small, self.palette)
        else:
            self._draw_fixation()

    def _draw_fixation(self):
        self.screen.fill(self.config["stimulus_bg_color"])
        cx = self.screen.get_width() // 2
        cy = self.screen.get_height() // 2
        arm = 16
        thickness = 2
        cross_color = self.config["text_color"]
        pygame.draw.line(self.screen, cross_color, (cx - arm, cy), (cx + arm, cy), thickness)
        pygame.draw.line(self.screen, cross_color, (cx, cy - arm), (cx, cy + arm), thickness)

    # ── terminal summary ──────────────────────────────────────────────────

    def _print_results(self):
        print("\n=== Results ===\n")
        hdr = (f"{'Subject':<16} {'Type':<8} {'Distractors':>11} "
               f"{'Outcome':>10} {'Trials':>7} {'Interval':>10}")
        print(hdr)
        print("─" * len(hdr))
        for r in self.results:
            print(f"{r['subject_id']:<16} {r['trial_type']:<8} {r['distractor_count']:>11} "
                  f"{r['verdict']:>10} {r['trials']:>7} {str(r['final_interval_ms']) + ' ms':>10}")
        if not self.results:
            print("(no completed sessions)")
        print(f"\nData file: {self.config['data_file']}")
        print(f"Log saved to: {self.event_log.path}")
        print(f"Finished at {datetime.now():%Y-%m-%d %H:%M:%S}")


# ══════════════════════════════════════════════════════════════════
#  Entry point
# ══════════════════════════════════════════════════════════════════

def main():
    pygame.init()
    experiment = Experiment(config=CONFIG)
    experiment.run()


if __name__ == "__main__":
    main()
