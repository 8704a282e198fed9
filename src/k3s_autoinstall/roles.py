"""
노드 역할 판별 모듈
요청된 역할과 로컬 상태로 수행할 부트스트랩 동작을 결정
"""

from enum import Enum

from .errors import ConfigurationError
from .state import ClusterJoinState


class Role(str, Enum):
    MASTER = "master"
    WORKER = "worker"


class Action(str, Enum):
    INITIALIZE_CLUSTER = "initialize-cluster"
    JOIN_AS_CONTROL_PLANE = "join-control-plane"
    JOIN_AS_WORKER = "join-worker"
    SKIP_ALREADY_INSTALLED = "skip-already-installed"

    @property
    def is_join(self) -> bool:
        return self in (Action.JOIN_AS_CONTROL_PLANE, Action.JOIN_AS_WORKER)


def resolve(role: Role, has_existing_installation: bool, join_state: ClusterJoinState) -> Action:
    """수행할 동작 결정

    1. k3s 가 이미 설치되어 있으면 건너뜀
    2. 마스터 요청이고 master_url 과 토큰이 모두 없으면 새 클러스터 초기화
    3. 마스터 요청이면 컨트롤 플레인으로 조인
    4. 그 외에는 워커로 조인
    """
    if has_existing_installation:
        return Action.SKIP_ALREADY_INSTALLED

    if Role(role) == Role.MASTER:
        if not join_state.has_master_url and not join_state.has_join_token:
            return Action.INITIALIZE_CLUSTER
        return Action.JOIN_AS_CONTROL_PLANE

    return Action.JOIN_AS_WORKER


def check_join_token(action: Action, join_state: ClusterJoinState):
    """조인 동작인데 토큰이 없으면 ConfigurationError"""
    if not action.is_join or join_state.has_join_token:
        return

    if action == Action.JOIN_AS_CONTROL_PLANE:
        raise ConfigurationError(
            "K3S_TOKEN not set. Set it in the config file or environment, "
            "or run a cluster-init master first."
        )
    raise ConfigurationError(
        "K3S_TOKEN not set. Set it in the config file or environment "
        "(copied from the first master: /var/lib/rancher/k3s/server/node-token)."
    )
