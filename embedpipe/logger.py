import logging
import os


def get_logger(
    name: str = "embedpipe", log_file: str = "embedpipe.log", log_dir: str = None
) -> logging.Logger:
    if log_dir is None:
        log_dir = os.getenv("EMBEDPIPE_LOG_PATH", "logs")
    if not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)
    if log_file is None:
        log_file = f"{name}.log"
    log_path = os.path.join(log_dir, log_file)

    logger = logging.getLogger(name)
    logger.setLevel(os.getenv("EMBEDPIPE_LOG_LEVEL", "INFO").upper())
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Console handler
    if not any(
        type(h) is logging.StreamHandler for h in logger.handlers  # noqa: E721
    ):
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    # File handler
    if not any(
        isinstance(h, logging.FileHandler)
        and h.baseFilename == os.path.abspath(log_path)
        for h in logger.handlers
    ):
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def set_log_level(level: str, prefix: str = "embedpipe") -> None:
    """Apply ``level`` to every already-created logger under ``prefix``."""
    level = level.upper()
    for name in list(logging.root.manager.loggerDict):
        if name == prefix or name.startswith(prefix + "."):
            logging.getLogger(name).setLevel(level)
