"""Application entry point for the Quiz Studio service."""

from __future__ import annotations

import socket

from quiz_studio.constants.about import APP_NAME
from quiz_studio.core.question_generator import QuestionGenerationService
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.server.api_server import run_api_server
from quiz_studio.settings import load_settings
from quiz_studio.utils.logging_config import configure_logging


def _determine_public_url(port: int) -> str:
    """Best-effort determination of the local IP that participants can reach."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Load settings, initialize logging and serve the API until interrupted."""
    settings = load_settings()
    logger = configure_logging(settings.LOG_LEVEL.upper())
    logger.info("Starting %s…", APP_NAME)
    if not settings.generation_configured:
        logger.warning("GROQ_API_KEY is not set; question generation will use sample questions")

    generator = QuestionGenerationService(
        api_key=settings.GROQ_API_KEY,
        api_url=settings.COMPLETION_API_URL,
        timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
    )
    quiz_manager = QuizManager(generator=generator)
    logger.info("API available at %s", _determine_public_url(settings.API_PORT))
    try:
        run_api_server(
            quiz_manager=quiz_manager,
            host=settings.API_HOST,
            port=settings.API_PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
    finally:
        generator.close()


if __name__ == "__main__":
    main()
