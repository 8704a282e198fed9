"""
네트워크 연결성 체크 모듈
TCP 포트 도달 가능 여부 확인
"""

import socket
from typing import Tuple

from .logger import get_logger


class NetworkChecker:
    """네트워크 연결성 확인 클래스"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.logger = get_logger()

    def check_port(self, host: str, port: int, timeout: float = 2) -> Tuple[bool, str]:
        """포트 연결 테스트"""
        try:
            self.logger.debug(f"Checking port {host}:{port}...")
            with socket.create_connection((host, port), timeout=timeout):
                pass
            self.logger.debug(f"✓ {host}:{port} is open")
            return True, f"✓ {host}:{port} 연결 성공"

        except socket.gaierror:
            self.logger.debug(f"✗ Cannot resolve {host}")
            return False, f"✗ {host} 호스트를 찾을 수 없습니다"
        except (socket.timeout, OSError) as e:
            self.logger.debug(f"✗ {host}:{port} is unreachable ({e})")
            return False, f"✗ {host}:{port} 연결 실패"

    def is_reachable(self, host: str, port: int, timeout: float = 2) -> bool:
        success, _ = self.check_port(host, port, timeout)
        return success
