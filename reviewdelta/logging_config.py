# reviewdelta/logging_config.py
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from reviewdelta.config.config import config_section

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# handlers we own carry this name so a second setup call replaces them
HANDLER_PREFIX = "reviewdelta."
# selenium and its HTTP client log every WebDriver command at DEBUG
DEFAULT_QUIET_LOGGERS = ("selenium", "urllib3")


def _drop_own_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()


def setup_logging(force_debug=False, cfg=None):
    """
    Configure the root logger from the `logging` section of configs.json
    (or `cfg` when given). `force_debug` (the CLI's -d) turns on DEBUG and
    the log file. Safe to call more than once.
    """
    logging_cfg = dict(config_section("configs.json", "logging") if cfg is None else cfg)

    if force_debug:
        logging_cfg["level"] = "DEBUG"
        logging_cfg["save_to_file"] = True

    level = getattr(logging, str(logging_cfg.get("level", "INFO")).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    _drop_own_handlers(root)

    formatter = logging.Formatter(LOG_FORMAT)

    if logging_cfg.get("console", True):
        ch = logging.StreamHandler()
        ch.set_name(HANDLER_PREFIX + "console")
        ch.setFormatter(formatter)
        root.addHandler(ch)

    if logging_cfg.get("save_to_file", False):
        file_path = Path(logging_cfg.get("file_path", "logs/app.log"))
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            file_path,
            maxBytes=logging_cfg.get("file_max_MB", 5) * 1024 * 1024,
            backupCount=logging_cfg.get("file_backup_count", 3),
            encoding="utf-8"
        )
        fh.set_name(HANDLER_PREFIX + "file")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    quiet_level = logging.DEBUG if force_debug else logging.WARNING
    for name in logging_cfg.get("quiet_loggers", DEFAULT_QUIET_LOGGERS):
        logging.getLogger(name).setLevel(quiet_level)

    return root
