# gym_scheduler/logging_config.py
import logging

from gym_scheduler.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = None) -> None:
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    # SQL echo is noisy at INFO; keep it opt-in
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
