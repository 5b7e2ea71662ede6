import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MODPLANNER_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Frontier entries kept by the solver after each trim
    SEARCH_WIDTH: int = 2000
    # Partial states expanded per character before settling for the best found
    MAX_EXPANSIONS: int = 100_000
    # Threads used to score children within one search; 1 scores inline
    WORKER_THREADS: int = 1
    # Floor for the current value when computing relative improvement
    CHANGE_EPSILON: float = 1e-6
    LOG_LEVEL: str = "WARNING"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Attach a stream handler to the package logger. For hosts and scripts."""
    logger = logging.getLogger("modplanner")
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
