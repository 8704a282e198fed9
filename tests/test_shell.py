"""
외부 명령 실행 헬퍼 및 패키지 설치 테스트
"""

from unittest import mock

import pytest
from k3s_autoinstall.errors import CommandError
from k3s_autoinstall.packages import PackageManager
from k3s_autoinstall.shell import run_command


def test_run_command_captures_output():
    result = run_command(["echo", "hello"])
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"


def test_run_command_shell_string_with_env():
    """문자열 명령은 쉘로 실행, env 는 현재 환경에 추가"""
    result = run_command("echo $AUTOINSTALL_TEST_VALUE | tr a-z A-Z", env={"AUTOINSTALL_TEST_VALUE": "abc"})
    assert result.stdout.strip() == "ABC"


def test_run_command_raises_on_failure():
    with pytest.raises(CommandError) as excinfo:
        run_command("echo oops >&2; exit 3")
    assert excinfo.value.returncode == 3
    assert excinfo.value.stderr == "oops"


def test_run_command_best_effort():
    result = run_command(["false"], check=False)
    assert result.returncode != 0


def test_install_base_ignores_optional_failure():
    """선택 패키지 실패는 무시"""
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        if "nano" in cmd:
            return mock.Mock(returncode=100)
        return mock.Mock(returncode=0)

    with mock.patch("k3s_autoinstall.packages.run_command", side_effect=fake_run):
        PackageManager(packages=["curl", "helm"]).install_base()

    assert calls[0][0] == ["apt-get", "update", "-y"]
    assert calls[1][0] == ["apt-get", "install", "-y", "curl", "helm"]
    assert calls[2][0] == ["apt-get", "install", "-y", "nano"]
    assert calls[2][1]["check"] is False
    assert all(kw["env"]["DEBIAN_FRONTEND"] == "noninteractive" for _, kw in calls)


def test_run_command_missing_binary_raises_command_error():
    """실행 파일이 없으면 rc=127 CommandError"""
    with pytest.raises(CommandError) as excinfo:
        run_command(["k3s-autoinstall-no-such-binary", "--version"])
    assert excinfo.value.returncode == 127
    assert excinfo.value.cmd == "k3s-autoinstall-no-such-binary --version"


def test_run_command_missing_binary_best_effort():
    result = run_command(["k3s-autoinstall-no-such-binary"], check=False)
    assert result.returncode == 127


def test_run_command_timeout_raises_command_error():
    """시간 초과는 rc=124 CommandError"""
    with pytest.raises(CommandError) as excinfo:
        run_command(["sleep", "5"], timeout=0.2)
    assert excinfo.value.returncode == 124
    assert "timed out" in excinfo.value.stderr
