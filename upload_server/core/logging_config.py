import logging
import os

class ColorFormatter(logging.Formatter):
    """Formatter that colours records by level."""
    COLORS = {
        logging.DEBUG: "\033[36m",   # Cyan
        logging.INFO: "\033[32m",    # Green
        logging.WARNING: "\033[33m", # Yellow
        logging.ERROR: "\033[31m",   # Red
        logging.CRITICAL: "\033[41m" # Red background
    }

    RESET = "\033[0m"

    def __init__(self, fmt: str, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if not self.use_color:
            return message
        color = self.COLORS.get(record.levelno, self.RESET)
        return f"{color}{message}{self.RESET}"

def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single stream handler to the package logger.
    Calling it again only updates the level.
    """
    logger = logging.getLogger("upload_server")
    logger.setLevel(level.upper())
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            ColorFormatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                use_color=os.environ.get("NO_COLOR") is None,
            )
        )
        logger.addHandler(handler)

    return logger
