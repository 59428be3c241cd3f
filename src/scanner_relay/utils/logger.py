"""
Logging setup.

Three categories, each rendered with a timestamp:
info  - everything below ERROR from the scanner_relay loggers
error - ERROR and above
scan  - one line per decoded scan, from the scanner_relay.scans logger
"""
import logging
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
ROOT_LOGGER = "scanner_relay"
SCAN_LOGGER = "scanner_relay.scans"
CATEGORIES = ("info", "error", "scan")


class CategoryFilter(logging.Filter):
    """Let through only the records that belong to one category"""

    def __init__(self, category):
        super().__init__()
        self.category = category

    def filter(self, record):
        is_scan = record.name == SCAN_LOGGER
        if self.category == "scan":
            return is_scan
        if is_scan:
            return False
        if self.category == "error":
            return record.levelno >= logging.ERROR
        return record.levelno < logging.ERROR


def log_file_paths(log_dir):
    return {category: Path(log_dir) / f"{category}.log" for category in CATEGORIES}


def setup_logging(log_type="console", log_dir="logs", level=logging.INFO):
    """
    Route the scanner_relay loggers to the console or to one file per category.

    Calling it again replaces the handlers installed by the previous call.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if log_type == "file":
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        for category, path in log_file_paths(log_dir).items():
            handler = logging.FileHandler(path)
            handler.addFilter(CategoryFilter(category))
            handler.setFormatter(formatter)
            root.addHandler(handler)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return root


def clear_logs(log_dir="logs"):
    """Truncate the category log files. Returns the files that were cleared."""
    cleared = []
    for path in log_file_paths(log_dir).values():
        if path.exists():
            path.write_text("")
            cleared.append(path)
    return cleared
