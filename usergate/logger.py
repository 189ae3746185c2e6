"""
This module provides a centralized, color-coded logging setup for the application.
It uses the colorama library to differentiate log messages by type and level,
so requests, remote calls and commits stand out in the console.
"""
import logging
import sys
from colorama import Fore, Style, init

class ColoredFormatter(logging.Formatter):
    """
    A custom log formatter that adds color to log messages based on their level
    and an optional 'log_type' for more granular control.
    """

    LOG_COLORS = {
        'ERROR': Fore.RED,
        'WARNING': Fore.YELLOW,
        'INFO': Fore.BLUE,
        'REQUEST': Fore.GREEN,
        'REMOTE': Fore.CYAN,
        'COMMIT': Fore.MAGENTA,
        'MUTATION': Fore.YELLOW,
        'LOGIN': Fore.GREEN,
        'DEFAULT': Fore.WHITE,
    }

    def __init__(self, fmt="%(message)s"):
        """Initializes the formatter and colorama."""
        super().__init__(fmt)
        init(autoreset=True)

    def format(self, record):
        """
        Formats the log record with appropriate colors.
        It uses 'log_type' if available, otherwise falls back to the log level name.
        """
        log_type = getattr(record, 'log_type', record.levelname)
        color = self.LOG_COLORS.get(log_type, self.LOG_COLORS['DEFAULT'])

        if log_type in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            log_fmt = f"{Style.BRIGHT}[{record.levelname}]{Style.NORMAL} {self._fmt}"
        else:
            log_fmt = f"[{log_type}] {self._fmt}"

        formatter = logging.Formatter(log_fmt)
        return color + formatter.format(record) + Style.RESET_ALL

def setup_logging(log_file: str = "usergate.log"):
    """
    Configures the root logger for the application.
    This setup includes:
    - A colored console handler for INFO-level messages.
    - A file handler for DEBUG-level messages.
    - Suppression of excessive logging from third-party libraries.
    """
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicate logs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)
