"""Quiz-related constants shared across the core and API layers."""

DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")

QUESTION_TYPE_MULTIPLE_CHOICE: str = "multiple_choice"
QUESTION_TYPE_TRUE_FALSE: str = "true_false"
QUESTION_TYPE_FILL_BLANK: str = "fill_blank"
QUESTION_TYPE_MULTI_SELECT: str = "multi_select"
QUESTION_TYPES: tuple[str, ...] = (
    QUESTION_TYPE_MULTIPLE_CHOICE,
    QUESTION_TYPE_TRUE_FALSE,
    QUESTION_TYPE_FILL_BLANK,
    QUESTION_TYPE_MULTI_SELECT,
)

TRUE_FALSE_OPTIONS: tuple[str, str] = ("True", "False")
MULTI_SELECT_SEPARATOR: str = ", "
MAX_TAGS: int = 5
DEFAULT_QUESTION_POINTS: int = 1

TIMER_TICK_SECONDS: float = 1.0
FINISHED_SESSION_LIMIT: int = 200
TIME_WARNING_THRESHOLD_SECONDS: int = 300

HIGH_SCORE_THRESHOLD: int = 80
MEDIUM_SCORE_THRESHOLD: int = 60
