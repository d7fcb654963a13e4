"""State of one participant's pass through one quiz."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import random
from threading import Lock
import time
from uuid import uuid4

from quiz_studio.constants.quiz_constants import QUESTION_TYPE_MULTI_SELECT, TIMER_TICK_SECONDS
from quiz_studio.core.answer_codec import decode_selection
from quiz_studio.core.errors import SessionClosedError
from quiz_studio.core.models import Attempt, Participant, Question, Quiz
from quiz_studio.core.scoring import Response, ScoreResult, score_attempt
from quiz_studio.core.timers import CountdownTimer, ElapsedTimer


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuizSession:
    """Holds the participant, the presentation order, answers and timers.

    Answers may be changed freely while the session is in progress. Submitting,
    whether by the participant or by the countdown reaching zero, freezes them,
    scores the attempt and cancels both timers. ``on_submitted`` receives the
    session and the score so the caller can persist the attempt and then call
    :meth:`complete`.
    """

    def __init__(
        self,
        quiz: Quiz,
        questions: list[Question],
        participant: Participant,
        on_submitted: Callable[["QuizSession", ScoreResult], None] | None = None,
        tick_interval: float | None = TIMER_TICK_SECONDS,
        shuffle_seed: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_id = uuid4().hex
        self.quiz = quiz
        self.participant = participant
        self._questions = list(questions)
        self._on_submitted = on_submitted
        self._tick_interval = tick_interval
        self._clock = clock
        self._lock = Lock()

        self._state = SessionState.NOT_STARTED
        self._position = 0
        self._answers: dict[str, str] = {}
        self._selections: dict[str, list[str]] = {}
        self._forced = False
        self._score: ScoreResult | None = None
        self._time_taken: int | None = None
        self._attempt: Attempt | None = None

        self._order = list(range(len(self._questions)))
        if quiz.shuffle_questions:
            random.Random(shuffle_seed).shuffle(self._order)

        self._elapsed = ElapsedTimer(interval=tick_interval, clock=clock)
        self._countdown: CountdownTimer | None = None
        if quiz.has_time_limit:
            self._countdown = CountdownTimer(
                total_seconds=quiz.time_limit_minutes * 60,
                on_expire=self._handle_time_up,
                interval=tick_interval,
            )

    # --- State ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    @property
    def was_forced(self) -> bool:
        return self._forced

    @property
    def score(self) -> ScoreResult | None:
        return self._score

    @property
    def time_taken_seconds(self) -> int | None:
        return self._time_taken

    @property
    def attempt(self) -> Attempt | None:
        return self._attempt

    @property
    def countdown(self) -> CountdownTimer | None:
        return self._countdown

    @property
    def elapsed(self) -> ElapsedTimer:
        return self._elapsed

    def start(self) -> None:
        with self._lock:
            if self._state is not SessionState.NOT_STARTED:
                raise SessionClosedError(f"Session already {self._state.value}.")
            self._state = SessionState.IN_PROGRESS
        self._elapsed.start()
        if self._countdown is not None:
            self._countdown.start()

    def tick(self) -> None:
        """Advance both timers by one step when they are driven manually."""
        self._elapsed.tick()
        if self._countdown is not None:
            self._countdown.tick()

    # --- Navigation ---

    def get_questions(self) -> list[Question]:
        """Questions in presentation order."""
        return [self._questions[index] for index in self._order]

    def get_question_count(self) -> int:
        return len(self._questions)

    def get_position(self) -> int:
        return self._position

    def get_current_question(self) -> Question | None:
        if not self._questions:
            return None
        return self._questions[self._order[self._position]]

    def go_to(self, position: int) -> Question:
        with self._lock:
            self._ensure_open()
            if not 0 <= position < len(self._order):
                raise IndexError(f"Question position {position} out of range")
            self._position = position
            return self._questions[self._order[position]]

    def next_question(self) -> Question | None:
        with self._lock:
            self._ensure_open()
            if self._position < len(self._order) - 1:
                self._position += 1
        return self.get_current_question()

    def previous_question(self) -> Question | None:
        with self._lock:
            self._ensure_open()
            if self._position > 0:
                self._position -= 1
        return self.get_current_question()

    # --- Answers ---

    def select_answer(self, question_id: str, answer: str | list[str]) -> None:
        """Set or replace the answer to a question."""
        with self._lock:
            self._ensure_open()
            question = self._find_question(question_id)
            if question.question_type == QUESTION_TYPE_MULTI_SELECT:
                selection = decode_selection(answer)
                self._selections[question_id] = list(dict.fromkeys(selection))
            else:
                if not isinstance(answer, str):
                    raise ValueError("This question takes a single answer.")
                self._answers[question_id] = answer

    def toggle_option(self, question_id: str, option: str) -> list[str]:
        """Add or remove ``option`` from a multi-select answer; returns the new selection."""
        with self._lock:
            self._ensure_open()
            question = self._find_question(question_id)
            if question.question_type != QUESTION_TYPE_MULTI_SELECT:
                raise ValueError("Only multi-select questions accept toggled options.")
            current = self._selections.setdefault(question_id, [])
            if option in current:
                current.remove(option)
            else:
                current.append(option)
            return list(current)

    def get_responses(self) -> dict[str, Response]:
        with self._lock:
            return self._responses()

    def unanswered_questions(self) -> list[Question]:
        responses = self.get_responses()
        return [q for q in self.get_questions() if not responses.get(q.question_id)]

    # --- Lifecycle ---

    def submit(self, forced: bool = False) -> ScoreResult:
        """Freeze the answers and score them; repeated calls return the first result."""
        with self._lock:
            if self._score is not None:
                return self._score
            if self._state is not SessionState.IN_PROGRESS:
                raise SessionClosedError(f"Cannot submit a session that is {self._state.value}.")
            self._state = SessionState.SUBMITTED
            self._forced = forced
            self._time_taken = self._elapsed.measure()
            self._score = score_attempt(self._questions, self._responses())
            result = self._score
        self._cancel_timers()
        if self._on_submitted is not None:
            self._on_submitted(self, result)
        return result

    def complete(self, attempt: Attempt) -> None:
        with self._lock:
            if self._state is not SessionState.SUBMITTED:
                raise SessionClosedError(f"Cannot complete a session that is {self._state.value}.")
            self._attempt = attempt
            self._state = SessionState.COMPLETED

    def abandon(self) -> None:
        """Leave without recording anything."""
        with self._lock:
            # A submitted session is already scored; leaving it only stops the clock.
            if self._state in (SessionState.NOT_STARTED, SessionState.IN_PROGRESS):
                self._state = SessionState.ABANDONED
        self._cancel_timers()

    def build_snapshot(self) -> dict[str, object]:
        countdown = self._countdown
        return {
            "session_id": self.session_id,
            "state": self._state.value,
            "participant": self.participant.name,
            "position": self._position,
            "question_count": len(self._questions),
            "elapsed_seconds": self._elapsed.measure() if self.is_open else self._time_taken,
            "remaining_seconds": countdown.remaining_seconds if countdown else None,
            "time_progress": countdown.progress_percentage if countdown else None,
            "time_warning": countdown.is_warning if countdown else False,
            "answered": sorted(qid for qid, value in self.get_responses().items() if value),
            "forced_submission": self._forced,
        }

    # --- Internals ---

    def _handle_time_up(self) -> None:
        if self._state is SessionState.IN_PROGRESS:
            self.submit(forced=True)

    def _cancel_timers(self) -> None:
        self._elapsed.cancel()
        if self._countdown is not None:
            self._countdown.cancel()

    def _responses(self) -> dict[str, Response]:
        responses: dict[str, Response] = dict(self._answers)
        for question_id, selection in self._selections.items():
            responses[question_id] = list(selection)
        return responses

    def _ensure_open(self) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            raise SessionClosedError(f"Session is {self._state.value}; answers can no longer change.")

    def _find_question(self, question_id: str) -> Question:
        for question in self._questions:
            if question.question_id == question_id:
                return question
        raise KeyError(question_id)
