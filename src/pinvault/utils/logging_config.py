import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Call once, at CLI startup."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stderr,
    )
    # Silence noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
