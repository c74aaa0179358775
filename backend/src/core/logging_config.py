"""Root logging setup for the API process."""
import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger. Safe to call more than once."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
    # SQL echo is controlled by the engine, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
