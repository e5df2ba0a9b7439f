import logging
import os
import sys
from datetime import datetime

from leader_inspector import config

SCRIPT_COLOR = '\033[36m'   # Cyan
RESET_COLOR = '\033[0m'

# Log level colors
LEVEL_COLORS = {
    'DEBUG': '\033[37m',       # White
    'INFO': '\033[32m',        # Green
    'WARNING': '\033[33m',     # Yellow
    'ERROR': '\033[31m',       # Red
    'CRITICAL': '\033[41m',    # Red background
}


class ColoredFormatter(logging.Formatter):
    """Console formatter tagging each line with the script name, level color and PID."""

    def __init__(self, script_name):
        super().__init__('%(asctime)s')
        self.script_name = script_name

    def format(self, record):
        record.asctime = self.formatTime(record)
        level_color = LEVEL_COLORS.get(record.levelname, RESET_COLOR)
        colored_level = f"{level_color}{record.levelname}{RESET_COLOR}"
        colored_script = f"{SCRIPT_COLOR}{self.script_name}{RESET_COLOR}"
        formatted = f"[{record.asctime}] [{colored_level}] [{colored_script}] [PID:{os.getpid()}] - {record.getMessage()}"
        if record.exc_info:
            formatted = f"{formatted}\n{self.formatException(record.exc_info)}"
        return formatted


def setup_logging(script_name, log_dir=None, level=logging.INFO, log_to_file=None):
    """
    Sets up the standard logger for a run.

    Args:
        script_name (str): Name used for the console tag and the log file name.
        log_dir (str, optional): Directory for log files. Defaults to config.LOG_DIR.
        level (int, optional): Logging level for both handlers. Defaults to logging.INFO.
        log_to_file (bool, optional): Write a timestamped log file as well.
                                      Defaults to config.LOG_TO_FILE.
    Returns:
        logging.Logger: The package logger.
    """
    if log_dir is None:
        log_dir = config.LOG_DIR
    if log_to_file is None:
        log_to_file = config.LOG_TO_FILE

    # Remove all existing handlers to prevent duplicate logs
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logger = logging.getLogger('leader_inspector')
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    # Console goes to stderr so the report on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(script_name))
    logger.addHandler(console_handler)

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        formatted_time = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
        file_handler = logging.FileHandler(os.path.join(log_dir, f"{script_name}_log_{formatted_time}.log"))
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger
