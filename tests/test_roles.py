"""
역할 판별 모듈 테스트
"""

import pytest
from k3s_autoinstall.errors import ConfigurationError
from k3s_autoinstall.roles import Action, Role, check_join_token, resolve
from k3s_autoinstall.state import ClusterJoinState

EMPTY = ClusterJoinState()
URL_ONLY = ClusterJoinState(master_url="https://10.0.0.81:6443")
TOKEN_ONLY = ClusterJoinState(join_token="abc")
BOTH = ClusterJoinState(master_url="https://10.0.0.81:6443", join_token="abc")


def test_master_without_state_initializes_cluster():
    """마스터 + 상태 없음 -> 클러스터 초기화"""
    assert resolve(Role.MASTER, False, EMPTY) == Action.INITIALIZE_CLUSTER


@pytest.mark.parametrize("state", [URL_ONLY, TOKEN_ONLY, BOTH])
def test_master_with_url_or_token_joins_control_plane(state):
    """마스터 + URL 또는 토큰 -> 컨트롤 플레인 조인"""
    assert resolve(Role.MASTER, False, state) == Action.JOIN_AS_CONTROL_PLANE


@pytest.mark.parametrize("state", [EMPTY, URL_ONLY, TOKEN_ONLY, BOTH])
def test_worker_always_joins_as_worker(state):
    """워커는 상태와 무관하게 워커 조인"""
    assert resolve(Role.WORKER, False, state) == Action.JOIN_AS_WORKER


@pytest.mark.parametrize("role", [Role.MASTER, Role.WORKER])
def test_existing_installation_is_skipped(role):
    """이미 설치된 노드는 건너뜀"""
    assert resolve(role, True, EMPTY) == Action.SKIP_ALREADY_INSTALLED
    assert resolve(role, True, BOTH) == Action.SKIP_ALREADY_INSTALLED


def test_role_accepts_plain_string():
    assert resolve("master", False, EMPTY) == Action.INITIALIZE_CLUSTER


def test_resolve_is_idempotent():
    """같은 입력이면 항상 같은 결과"""
    first = resolve(Role.MASTER, False, URL_ONLY)
    second = resolve(Role.MASTER, False, URL_ONLY)
    assert first == second == Action.JOIN_AS_CONTROL_PLANE


def test_worker_without_token_is_configuration_error():
    """워커 + 빈 토큰 -> 설정 오류"""
    state = ClusterJoinState(join_token="")
    action = resolve(Role.WORKER, False, state)
    with pytest.raises(ConfigurationError, match="K3S_TOKEN"):
        check_join_token(action, state)


def test_control_plane_join_without_token_is_configuration_error():
    action = resolve(Role.MASTER, False, URL_ONLY)
    with pytest.raises(ConfigurationError):
        check_join_token(action, URL_ONLY)


@pytest.mark.parametrize("action", [Action.INITIALIZE_CLUSTER, Action.SKIP_ALREADY_INSTALLED])
def test_non_join_actions_do_not_need_token(action):
    check_join_token(action, EMPTY)


def test_join_with_token_passes():
    check_join_token(Action.JOIN_AS_WORKER, TOKEN_ONLY)
    check_join_token(Action.JOIN_AS_CONTROL_PLANE, BOTH)
