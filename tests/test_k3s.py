"""
k3s 설치 모듈 테스트
"""

from unittest import mock

import pytest
from k3s_autoinstall.errors import AutoinstallError, CommandError
from k3s_autoinstall.k3s import K3sManager


def ok(stdout="#!/bin/sh\necho install\n"):
    return mock.Mock(returncode=0, stdout=stdout)


def test_cluster_init_installer_env(tmp_path):
    """cluster-init 설치 환경 변수 및 토큰 읽기"""
    token_path = tmp_path / "node-token"
    token_path.write_text("K10secret::server:abc\n")
    manager = K3sManager(lan_ip="192.168.1.5", extra_tls_sans=["203.0.113.5"], token_path=str(token_path))

    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=ok()) as run:
        token = manager.install_server_cluster_init()

    assert token == "K10secret::server:abc"
    fetch, install = run.call_args_list
    assert fetch[0][0] == ["curl", "-sfL", "https://get.k3s.io"]
    assert install[0][0] == ["sh", "-s", "-"]
    assert install[1]["input_text"] == "#!/bin/sh\necho install\n"
    env = install[1]["env"]
    assert env["INSTALL_K3S_EXEC"] == (
        "server --cluster-init --write-kubeconfig-mode=644 "
        "--tls-san 192.168.1.5 --tls-san 203.0.113.5"
    )


def test_server_join_installer_env():
    manager = K3sManager(lan_ip="192.168.1.6")
    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=ok()) as run:
        manager.install_server_join("https://10.0.0.81:6443", "abc")

    env = run.call_args[1]["env"]
    assert env == {"INSTALL_K3S_EXEC": "server --server https://10.0.0.81:6443 --token abc "
                                       "--write-kubeconfig-mode=644 --tls-san 192.168.1.6"}


def test_agent_installer_env():
    manager = K3sManager(lan_ip="192.168.1.7")
    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=ok()) as run:
        manager.install_agent("https://10.0.0.81:6443", "abc")

    assert run.call_args[1]["env"] == {"K3S_URL": "https://10.0.0.81:6443", "K3S_TOKEN": "abc"}


def test_lan_ip_is_not_duplicated_in_tls_sans():
    manager = K3sManager(lan_ip="192.168.1.5", extra_tls_sans=["192.168.1.5", None, ""])
    assert manager._tls_san_args() == "--tls-san 192.168.1.5"


def test_missing_token_file_raises(tmp_path):
    manager = K3sManager(token_path=str(tmp_path / "missing"))
    with mock.patch("k3s_autoinstall.k3s.time.sleep"):
        with pytest.raises(AutoinstallError):
            manager.read_node_token(attempts=3, interval=0)


def test_wait_for_api_succeeds_after_retries():
    """몇 번 실패 후 성공"""
    manager = K3sManager()
    results = [mock.Mock(returncode=1), mock.Mock(returncode=1), mock.Mock(returncode=0)]

    with mock.patch("k3s_autoinstall.k3s.run_command", side_effect=results) as run, \
            mock.patch("k3s_autoinstall.k3s.time.sleep") as sleep:
        assert manager.wait_for_api(attempts=60, interval=2) is True

    assert run.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(2)


def test_wait_for_api_is_bounded():
    """제한 횟수 초과 시 False (예외 없음)"""
    manager = K3sManager()

    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=mock.Mock(returncode=1)) as run, \
            mock.patch("k3s_autoinstall.k3s.time.sleep") as sleep:
        assert manager.wait_for_api(attempts=5, interval=2) is False

    assert run.call_count == 5
    assert sleep.call_count == 4


def test_is_server_active():
    manager = K3sManager()
    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=mock.Mock(returncode=0)) as run:
        assert manager.is_server_active() is True
    assert run.call_args[0][0] == ["systemctl", "is-active", "--quiet", "k3s"]

    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=mock.Mock(returncode=3)):
        assert manager.is_server_active() is False


def test_installer_download_failure_stops_install():
    """스크립트 다운로드 실패 시 sh 를 실행하지 않고 CommandError"""
    manager = K3sManager(lan_ip="192.168.1.7")
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        raise CommandError(cmd, 7, "curl: (7) Failed to connect")

    with mock.patch("k3s_autoinstall.k3s.run_command", side_effect=fake_run):
        with pytest.raises(CommandError) as excinfo:
            manager.install_agent("https://10.0.0.81:6443", "abc")

    assert excinfo.value.returncode == 7
    assert calls == [["curl", "-sfL", "https://get.k3s.io"]]


def test_installer_unreachable_url_raises():
    """닫힌 포트의 설치 URL -> CommandError (조용히 성공하지 않음)"""
    manager = K3sManager(install_url="http://127.0.0.1:1/install.sh", lan_ip="192.168.1.7")
    with mock.patch("k3s_autoinstall.k3s.console"):
        with pytest.raises(CommandError):
            manager.install_agent("https://10.0.0.81:6443", "abc")


def test_empty_installer_script_raises():
    manager = K3sManager(lan_ip="192.168.1.7")
    with mock.patch("k3s_autoinstall.k3s.run_command", return_value=ok(stdout="")) as run:
        with pytest.raises(AutoinstallError):
            manager.install_server_join("https://10.0.0.81:6443", "abc")
    assert run.call_count == 1
