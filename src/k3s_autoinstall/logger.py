"""
로깅 시스템
실행 로그 파일, 에러 로그 파일, Rich 콘솔 출력 지원
"""

import logging
import os
from datetime import datetime
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console

console = Console()

LOGGER_NAME = "k3s_autoinstall"


class InstallLogger:
    """설치 로거

    log_dir 이 None 이면 파일 핸들러 없이 콘솔에만 기록한다.
    """

    def __init__(self, log_dir: Optional[str] = "/var/log/k3s-autoinstall",
                 log_level: str = "INFO", debug: bool = False):
        self.log_dir = log_dir
        self.log_level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)
        self.debug_mode = debug
        self.log_file = None
        self.error_file = None

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(self.log_level)
        self.logger.propagate = False
        self.logger.handlers.clear()

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.log_file = os.path.join(log_dir, f"install_{timestamp}.log")
            self.error_file = os.path.join(log_dir, f"error_{timestamp}.log")

            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(self.log_level)
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

            error_handler = logging.FileHandler(self.error_file, encoding='utf-8')
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(file_formatter)
            self.logger.addHandler(error_handler)

        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=False,
            show_path=debug
        )
        rich_handler.setLevel(self.log_level)
        self.logger.addHandler(rich_handler)

    def debug(self, message: str):
        self.logger.debug(message)

    def info(self, message: str):
        self.logger.info(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)


# 글로벌 로거 인스턴스
_logger: Optional[InstallLogger] = None


def get_logger() -> InstallLogger:
    """로거 인스턴스 가져오기 (초기화 전에는 콘솔 전용)"""
    global _logger
    if _logger is None:
        _logger = InstallLogger(log_dir=None)
    return _logger


def init_logger(log_dir: Optional[str], log_level: str, debug: bool) -> InstallLogger:
    """로거 초기화"""
    global _logger
    _logger = InstallLogger(log_dir, log_level, debug)
    return _logger
