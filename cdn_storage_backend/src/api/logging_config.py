import logging

from src.api.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# PUBLIC_INTERFACE
def configure_logging(settings: Settings) -> None:
    """
    Configure root logging once per process.

    Logs go to stderr and, when LOG_DIR is configured, also to <LOG_DIR>/app.log.
    """
    root = logging.getLogger()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)

    if root.handlers:
        return

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(settings.log_dir / "app.log")
        fh.setFormatter(fmt)
        root.addHandler(fh)
