"""
외부 명령 실행 헬퍼
모든 설치 단계는 이 함수를 통해 외부 도구를 호출한다
"""

import os
import subprocess
from typing import Dict, Optional, Sequence, Union

from .errors import CommandError
from .logger import get_logger


def run_command(cmd: Union[str, Sequence[str]],
                env: Optional[Dict[str, str]] = None,
                check: bool = True,
                capture: bool = True,
                timeout: Optional[float] = None,
                input_text: Optional[str] = None) -> subprocess.CompletedProcess:
    """명령 실행

    Args:
        cmd: 문자열이면 쉘을 통해 실행 (파이프 사용 시), 리스트면 직접 실행
        env: 현재 환경에 덧붙일 환경 변수
        check: True 이면 실패 시 CommandError 발생
            (실행 파일 없음은 127, 시간 초과는 124 로 처리)
        capture: 출력 캡처 여부 (False 이면 터미널로 그대로 출력)
        timeout: 초 단위 제한 시간
        input_text: 표준 입력으로 전달할 문자열

    Returns:
        subprocess.CompletedProcess
    """
    logger = get_logger()
    shell = isinstance(cmd, str)
    display = cmd if shell else " ".join(cmd)
    logger.debug(f"$ {display}")

    run_env = None
    if env:
        run_env = dict(os.environ)
        run_env.update(env)

    try:
        result = subprocess.run(
            cmd,
            shell=shell,
            env=run_env,
            capture_output=capture,
            text=True,
            timeout=timeout,
            input=input_text,
        )
    except subprocess.TimeoutExpired as e:
        result = subprocess.CompletedProcess(cmd, 124, "", f"timed out after {e.timeout}s")
    except OSError as e:
        # 실행 파일 없음 등
        result = subprocess.CompletedProcess(cmd, 127, "", str(e))

    if result.returncode != 0:
        if check:
            logger.error(f"Command failed (rc={result.returncode}): {display}")
            raise CommandError(cmd, result.returncode, result.stderr)
        logger.debug(f"Ignored failure (rc={result.returncode}): {display}")

    return result
