"""
로컬 상태 저장소
클러스터 초기화 후 MASTER_URL / K3S_TOKEN / WG_SELF 를 KEY=value 형식으로 보관
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .logger import get_logger


@dataclass(frozen=True)
class ClusterJoinState:
    """클러스터 조인 상태"""
    master_url: Optional[str] = None
    join_token: Optional[str] = None
    vpn_self_address: Optional[str] = None

    @property
    def has_master_url(self) -> bool:
        return bool(self.master_url)

    @property
    def has_join_token(self) -> bool:
        return bool(self.join_token)

    def merged(self, other: "ClusterJoinState") -> "ClusterJoinState":
        """other 에 값이 있는 항목만 덮어쓴 새 상태"""
        return replace(
            self,
            master_url=other.master_url or self.master_url,
            join_token=other.join_token or self.join_token,
            vpn_self_address=other.vpn_self_address or self.vpn_self_address,
        )


class StateStore:
    """상태 파일 관리 클래스

    실행 시작 시 한 번 읽고, 클러스터 초기화 성공 후 한 번 기록한다.
    """

    FILE_NAME = "local.env"

    KEYS = {
        "MASTER_URL": "master_url",
        "K3S_TOKEN": "join_token",
        "WG_SELF": "vpn_self_address",
    }

    def __init__(self, state_dir: str = "/etc/cluster-autoinstall"):
        self.state_dir = state_dir
        self.path = os.path.join(state_dir, self.FILE_NAME)
        self.logger = get_logger()

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def read_raw(self) -> Dict[str, str]:
        """KEY=value 라인 파싱 (주석, 빈 줄, 따옴표 처리)"""
        values = {}
        if not self.exists():
            return values

        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                if line.startswith("export "):
                    line = line[len("export "):]
                key, value = line.split("=", 1)
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                    value = value[1:-1]
                values[key.strip()] = value
        return values

    def load(self) -> ClusterJoinState:
        """상태 파일 로드 (없으면 빈 상태)"""
        raw = self.read_raw()
        fields = {attr: raw.get(key) or None for key, attr in self.KEYS.items()}
        state = ClusterJoinState(**fields)
        if raw:
            self.logger.debug(f"Loaded state from {self.path}: master_url={state.master_url}, "
                              f"token={'set' if state.has_join_token else 'unset'}")
        return state

    def save(self, state: ClusterJoinState):
        """상태 파일 기록 (토큰 포함이므로 0600)"""
        os.makedirs(self.state_dir, exist_ok=True)

        lines = []
        for key, attr in self.KEYS.items():
            value = getattr(state, attr)
            if value:
                lines.append(f"{key}={value}")

        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

        self.logger.info(f"State saved to {self.path}")
