"""Results dashboard statistics and CSV export for a quiz's attempts."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime
import io
import math

from quiz_studio.constants.quiz_constants import HIGH_SCORE_THRESHOLD, MEDIUM_SCORE_THRESHOLD

CSV_HEADER = "Participant Name,Score (%),Time Taken,Attempt Date"


@dataclass(slots=True)
class ResultRow:
    """One attempt joined with the name of the participant who made it."""

    participant_name: str
    score: int
    time_taken_seconds: int
    attempted_at: datetime


@dataclass(slots=True)
class ResultsSummary:
    total_attempts: int
    average_score: int
    average_time_seconds: int
    highest_score: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_attempts": self.total_attempts,
            "average_score": self.average_score,
            "average_time_seconds": self.average_time_seconds,
            "highest_score": self.highest_score,
        }


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def summarize(rows: list[ResultRow]) -> ResultsSummary:
    """Aggregate statistics; every figure is 0 when there are no attempts."""
    if not rows:
        return ResultsSummary(0, 0, 0, 0)
    total = len(rows)
    return ResultsSummary(
        total_attempts=total,
        average_score=_round_half_up(sum(row.score for row in rows) / total),
        average_time_seconds=_round_half_up(sum(row.time_taken_seconds for row in rows) / total),
        highest_score=max(row.score for row in rows),
    )


def score_band(score: int) -> str:
    if score >= HIGH_SCORE_THRESHOLD:
        return "high"
    if score >= MEDIUM_SCORE_THRESHOLD:
        return "medium"
    return "low"


def format_time(seconds: int) -> str:
    """``M:SS``; minutes keep counting past the hour."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def format_attempt_date(moment: datetime) -> str:
    """Locale-style timestamp such as ``3/7/2024, 2:05:09 PM``."""
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{moment.month}/{moment.day}/{moment.year}, "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )


def export_attempts_csv(rows: list[ResultRow]) -> str:
    """Render attempts as CSV text with a bare header and bare numeric scores."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for row in rows:
        writer.writerow(
            [
                row.participant_name,
                row.score,
                format_time(row.time_taken_seconds),
                format_attempt_date(row.attempted_at),
            ]
        )
    body = buffer.getvalue().rstrip("\n")
    return f"{CSV_HEADER}\n{body}" if body else CSV_HEADER


def results_filename(title: str) -> str:
    return f"{title}-results.csv"
