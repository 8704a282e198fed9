"""
엔드포인트 선택 모듈 테스트
"""

from unittest import mock

import pytest
from k3s_autoinstall.endpoint import EndpointSelector, select_master_endpoint


def reachable(host, port):
    return True


def unreachable(host, port):
    return False


def test_override_wins_over_probe():
    """명시적 지정은 프로브 성공보다 우선"""
    probe = mock.Mock(return_value=True)
    url = select_master_endpoint("https://1.2.3.4:6443", "10.0.0.81", "10.100.1.2", "192.168.1.5", probe)
    assert url == "https://1.2.3.4:6443"
    probe.assert_not_called()


def test_probe_wins_over_vpn():
    url = select_master_endpoint(None, "10.0.0.81", "10.100.1.2", "192.168.1.5", reachable)
    assert url == "https://10.0.0.81:6443"


def test_vpn_wins_over_lan():
    url = select_master_endpoint(None, "10.0.0.81", "10.100.1.2", "192.168.1.5", unreachable)
    assert url == "https://10.100.1.2:6443"


def test_lan_fallback():
    url = select_master_endpoint(None, "10.0.0.81", None, "192.168.1.5", unreachable)
    assert url == "https://192.168.1.5:6443"


def test_no_probe_target_skips_probe():
    probe = mock.Mock(return_value=True)
    url = select_master_endpoint("", None, None, "192.168.1.5", probe)
    assert url == "https://192.168.1.5:6443"
    probe.assert_not_called()


def test_probe_receives_api_port():
    probe = mock.Mock(return_value=False)
    select_master_endpoint(None, "10.0.0.81", None, "192.168.1.5", probe, port=16443)
    probe.assert_called_once_with("10.0.0.81", 16443)


def test_selector_is_repeatable():
    """여러 번 호출해도 같은 결과"""
    checker = mock.Mock()
    checker.is_reachable.return_value = False
    selector = EndpointSelector("10.0.0.81", "192.168.1.5", timeout=2, checker=checker)

    first = selector.select(None, "10.100.1.2")
    second = selector.select(None, "10.100.1.2")

    assert first == second == "https://10.100.1.2:6443"
    checker.is_reachable.assert_called_with("10.0.0.81", 6443, 2)
