"""
예외 정의
설정 오류와 외부 도구 실패 두 가지로 구분
"""

from typing import Optional, Sequence, Union


class AutoinstallError(Exception):
    """설치 도구 기본 예외"""


class ConfigurationError(AutoinstallError):
    """필수 입력(조인 토큰 등)이 누락된 경우. 재시도하지 않는다."""


class CommandError(AutoinstallError):
    """외부 명령이 0이 아닌 종료 코드를 반환한 경우"""

    def __init__(self, cmd: Union[str, Sequence[str]], returncode: int, stderr: Optional[str] = None):
        self.cmd = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed (rc={returncode}): {self.cmd}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)
