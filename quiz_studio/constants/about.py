"""Static metadata describing Quiz Studio."""

APP_NAME = "Quiz Studio"
APP_VERSION = "0.1.0"
APP_ABOUT_TEXT = (
    "Quiz Studio lets authors build shareable quizzes, optionally drafting questions "
    "with a hosted language model, and lets anyone with the link take them."
)
