"""
Accuracy-driven staircase over the display interval.

The interval starts at `initial_interval_ms` and grows by `step_ms` after
every error.  A streak of `success_streak` correct answers at the current
interval ends the staircase successfully and produces a SessionRecord; a
session that reaches `max_trials` responses without such a streak ends with
no record.

Trial flow (one trial in flight at a time, all on the main loop):

    IDLE ─start()─▶ PRESENTING ─timer─▶ AWAITING_RESPONSE
         ─submit_response()─▶ EVALUATING ─pause─▶ PRESENTING …
                                         └──────▶ COMPLETED

step() is the pure transition on StaircaseState; StaircaseController wraps
it with the side effects (presentations, timers, notifications, records).
"""

import random
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum

from preattentive.presentation import Scheduler, TrialPresentation
from preattentive.records import EventLog, SessionRecord
from preattentive.stimuli import TrialType


DISTRACTOR_OPTIONS = (10, 20, 30, 40, 50)
RESPONSE_PROMPT = "Was the target shape present?"


# ══════════════════════════════════════════════════════════════════
#  Data structures
# ══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TrialConfig:
    subject_id: str
    trial_type: TrialType
    distractor_count: int


def build_trial_config(subject_id: str, trial_type: str | TrialType,
                       distractor_count: int) -> TrialConfig:
    """Validate form input.  Raises ValueError with a user-facing message."""
    subject_id = (subject_id or "").strip()
    if not subject_id:
        raise ValueError("Please enter a Subject ID")
    try:
        trial_type = TrialType(trial_type)
    except ValueError:
        raise ValueError(f"Unknown trial type: {trial_type}") from None
    if distractor_count not in DISTRACTOR_OPTIONS:
        raise ValueError(
            f"Number of distractors must be one of {', '.join(map(str, DISTRACTOR_OPTIONS))}"
        )
    return TrialConfig(subject_id, trial_type, int(distractor_count))


@dataclass(frozen=True)
class StaircaseRules:
    initial_interval_ms: int = 150
    step_ms: int = 25
    success_streak: int = 10
    max_trials: int = 100
    pause_ms: int = 1000


@dataclass
class StaircaseState:
    display_interval_ms: int = 150
    consecutive_correct: int = 0
    trials_completed: int = 0
    running: bool = False

    def reset(self, rules: StaircaseRules):
        self.display_interval_ms = rules.initial_interval_ms
        self.consecutive_correct = 0
        self.trials_completed = 0


@dataclass(frozen=True)
class TrialOutcome:
    target_present: bool
    user_said_present: bool
    response_time_ms: int | None = None

    @property
    def correct(self) -> bool:
        return self.user_said_present == self.target_present


class Phase(Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    AWAITING_RESPONSE = "awaiting_response"
    EVALUATING = "evaluating"
    COMPLETED = "completed"


class Verdict(Enum):
    CONTINUE = "continue"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


# ══════════════════════════════════════════════════════════════════
#  Transition
# ══════════════════════════════════════════════════════════════════

def step(state: StaircaseState, outcome: TrialOutcome, rules: StaircaseRules) -> Verdict:
    """
    Fold one response into `state` (mutated in place) and decide what comes next.

    On SUCCESS the state still holds the final interval; resetting it is the
    caller's job once the record has been taken.
    """
    state.trials_completed += 1
    if outcome.correct:
        state.consecutive_correct += 1
        if state.consecutive_correct >= rules.success_streak:
            return Verdict.SUCCESS
    else:
        state.display_interval_ms += rules.step_ms
        state.consecutive_correct = 0

    if state.trials_completed >= rules.max_trials:
        return Verdict.EXHAUSTED
    return Verdict.CONTINUE


# ══════════════════════════════════════════════════════════════════
#  Controller
# ══════════════════════════════════════════════════════════════════

class StaircaseController:
    """
    Runs one staircase for a TrialConfig.

    The response collector is message-passing: while the phase is
    AWAITING_RESPONSE the owner calls submit_response() with the subject's
    answer.  `notify` receives user-facing messages and may block (a modal
    dialog); the next presentation is only scheduled after it returns.
    `record_sink` persists a SessionRecord; an OSError from it is reported
    through `notify` and otherwise ignored.
    """

    def __init__(
        self,
        config: TrialConfig,
        scheduler: Scheduler,
        canvas_size: tuple[int, int],
        record_sink: Callable[[SessionRecord], object],
        notify: Callable[[str], None],
        rules: StaircaseRules | None = None,
        rng: random.Random | None = None,
        event_log: EventLog | None = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.canvas_size = canvas_size
        self.record_sink = record_sink
        self.notify = notify
        self.rules = rules or StaircaseRules()
        self.rng = rng or random.Random()
        self.event_log = event_log

        self.state = StaircaseState(display_interval_ms=self.rules.initial_interval_ms)
        self.phase = Phase.IDLE
        self.verdict: Verdict | None = None
        self.records: list[SessionRecord] = []
        self.presentation: TrialPresentation | None = None
        self.trial_index = 0
        self._target_present: bool | None = None

    # ── lifecycle ─────────────────────────────────────────────────────────

    def start(self):
        if self.phase not in (Phase.IDLE, Phase.COMPLETED):
            raise RuntimeError(f"cannot start a staircase while {self.phase.value}")
        if self.phase is Phase.COMPLETED and self.verdict is not Verdict.SUCCESS:
            raise RuntimeError("an exhausted staircase cannot be restarted")
        self.phase = Phase.IDLE
        self.verdict = None
        self.state.running = True
        self._log("session_start",
                  subject_id=self.config.subject_id,
                  trial_type=self.config.trial_type,
                  distractor_count=self.config.distractor_count,
                  state=asdict(self.state))
        self._present()

    @property
    def finished(self) -> bool:
        return self.phase is Phase.COMPLETED

    # ── presenting ────────────────────────────────────────────────────────

    def _present(self):
        self.presentation = TrialPresentation(
            self.config.trial_type,
            self.config.distractor_count,
            self.state.display_interval_ms,
            self.scheduler,
            on_close=self._presentation_closed,
            rng=self.rng,
        )
        self.phase = Phase.PRESENTING
        frame = self.presentation.show(self.canvas_size)
        self._log("trial_start",
                  trial_index=self.trial_index,
                  display_interval_ms=self.state.display_interval_ms,
                  target_present=self.presentation.target_present,
                  n_shapes=len(frame.shapes),
                  onset_ms=self.presentation.onset_ms)

    def _presentation_closed(self, target_present: bool):
        self._target_present = target_present
        self.phase = Phase.AWAITING_RESPONSE

    # ── responding ────────────────────────────────────────────────────────

    def submit_response(self, user_said_present: bool) -> TrialOutcome:
        if self.phase is not Phase.AWAITING_RESPONSE:
            raise RuntimeError(f"no response expected while {self.phase.value}")

        offset = self.presentation.offset_ms if self.presentation else None
        outcome = TrialOutcome(
            target_present=self._target_present,
            user_said_present=bool(user_said_present),
            response_time_ms=self.scheduler.now() - offset if offset is not None else None,
        )
        self._target_present = None
        self.presentation = None
        self.phase = Phase.EVALUATING
        self._evaluate(outcome)
        return outcome

    def _evaluate(self, outcome: TrialOutcome):
        interval = self.state.display_interval_ms
        verdict = step(self.state, outcome, self.rules)
        self._log("trial_response",
                  trial_index=self.trial_index,
                  display_interval_ms=interval,
                  target_present=outcome.target_present,
                  user_said_present=outcome.user_said_present,
                  correct=outcome.correct,
                  rt_ms=outcome.response_time_ms,
                  verdict=verdict,
                  state=asdict(self.state))
        self.trial_index += 1

        if verdict is Verdict.SUCCESS:
            self._succeed()
            return

        if not outcome.correct:
            self.notify(
                f"Incorrect response. Target was "
                f"{'PRESENT' if outcome.target_present else 'ABSENT'}\n"
                f"Display interval increased to: {self.state.display_interval_ms}ms"
            )

        if verdict is Verdict.EXHAUSTED:
            self._finish(verdict)
            self._log("session_exhausted",
                      trials_completed=self.state.trials_completed,
                      display_interval_ms=self.state.display_interval_ms)
            self.notify("Maximum trial count reached. Ending session.")
            return

        self.scheduler.call_later(self.rules.pause_ms, self._present)

    def _succeed(self):
        record = SessionRecord(
            subject_id=self.config.subject_id,
            trial_type=self.config.trial_type.value,
            distractor_count=self.config.distractor_count,
            final_display_interval_ms=self.state.display_interval_ms,
        )
        self.records.append(record)

        saved = True
        try:
            self.record_sink(record)
        except OSError as e:
            saved = False
            self._log("save_error", error=str(e), record=asdict(record))
            self.notify(f"Error saving data: {e}")

        self._log("session_complete", record=asdict(record), saved=saved)
        self.notify(
            "Trial completed successfully!\n"
            f"Final interval: {record.final_display_interval_ms}ms\n"
            + ("Data recorded to file." if saved else "Data was NOT recorded.")
        )
        self.state.reset(self.rules)
        self._finish(Verdict.SUCCESS)

    def _finish(self, verdict: Verdict):
        self.verdict = verdict
        self.state.running = False
        self.phase = Phase.COMPLETED

    # ── logging ───────────────────────────────────────────────────────────

    def _log(self, record_type: str, **fields):
        if self.event_log is not None:
            self.event_log.log(record_type, **fields)
