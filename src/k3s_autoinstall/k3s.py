"""
k3s 설치 / 조인 모듈
클러스터 초기화, 컨트롤 플레인 조인, 워커(에이전트) 조인, API 준비 대기
"""

import os
import shutil
import time
from typing import List, Optional

from rich.console import Console

from .errors import AutoinstallError
from .logger import get_logger
from .shell import run_command

console = Console()

NODE_TOKEN_PATH = "/var/lib/rancher/k3s/server/node-token"
K3S_BINARY = "/usr/local/bin/k3s"
KUBECTL_LINK = "/usr/local/bin/kubectl"


class K3sManager:
    """k3s 설치 및 상태 관리 클래스"""

    def __init__(self, install_url: str = "https://get.k3s.io", lan_ip: str = "",
                 extra_tls_sans: Optional[List[str]] = None,
                 token_path: str = NODE_TOKEN_PATH, debug: bool = False):
        self.install_url = install_url
        self.lan_ip = lan_ip
        self.extra_tls_sans = [san for san in (extra_tls_sans or []) if san and san != lan_ip]
        self.token_path = token_path
        self.debug = debug
        self.logger = get_logger()

    def is_installed(self) -> bool:
        """k3s 바이너리 존재 여부"""
        installed = shutil.which("k3s") is not None
        self.logger.debug(f"k3s installed: {installed}")
        return installed

    def is_server_active(self) -> bool:
        """k3s 서버 서비스 실행 여부 (컨트롤 플레인 노드)"""
        result = run_command(["systemctl", "is-active", "--quiet", "k3s"], check=False)
        return result.returncode == 0

    def _tls_san_args(self) -> str:
        sans = [self.lan_ip] + self.extra_tls_sans
        return " ".join(f"--tls-san {san}" for san in sans if san)

    def _run_installer(self, env: dict):
        """설치 스크립트를 내려받은 뒤 sh 로 실행

        다운로드 실패는 CommandError 로 전파된다.
        """
        script = run_command(["curl", "-sfL", self.install_url]).stdout
        if not script.strip():
            raise AutoinstallError(f"Empty installer script from {self.install_url}")
        # 설치 스크립트 출력은 그대로 터미널에 표시
        run_command(["sh", "-s", "-"], env=env, capture=False, input_text=script)

    def install_server_cluster_init(self) -> str:
        """새 클러스터 초기화. 생성된 조인 토큰 반환"""
        console.print("\n[bold cyan]K3s 설치 중 (server, cluster-init)...[/bold cyan]\n")
        self.logger.info("Installing K3s (server, cluster-init)...")

        exec_args = f"server --cluster-init --write-kubeconfig-mode=644 {self._tls_san_args()}".strip()
        self._run_installer({"INSTALL_K3S_EXEC": exec_args})

        token = self.read_node_token()
        console.print("[green]✓ 클러스터 초기화 완료[/green]")
        return token

    def install_server_join(self, master_url: str, token: str):
        """기존 클러스터에 컨트롤 플레인으로 조인"""
        console.print("\n[bold cyan]K3s 설치 중 (server join)...[/bold cyan]\n")
        self.logger.info(f"Installing K3s (server join) via {master_url}...")

        exec_args = (f"server --server {master_url} --token {token} "
                     f"--write-kubeconfig-mode=644 {self._tls_san_args()}").strip()
        self._run_installer({"INSTALL_K3S_EXEC": exec_args})
        console.print("[green]✓ 컨트롤 플레인 조인 완료[/green]")

    def install_agent(self, master_url: str, token: str):
        """워커(에이전트)로 조인"""
        console.print("\n[bold cyan]K3s 설치 중 (worker/agent)...[/bold cyan]\n")
        self.logger.info(f"Installing K3s (worker/agent) via {master_url}...")

        self._run_installer({"K3S_URL": master_url, "K3S_TOKEN": token})
        console.print("[green]✓ 워커 조인 완료[/green]")

    def read_node_token(self, attempts: int = 30, interval: float = 1) -> str:
        """서버가 기록하는 node-token 파일을 기다렸다가 읽기"""
        for _ in range(attempts):
            if os.path.exists(self.token_path):
                with open(self.token_path, "r", encoding="utf-8") as f:
                    token = f.read().strip()
                if token:
                    return token
            time.sleep(interval)

        raise AutoinstallError(f"Join token not found at {self.token_path}")

    def ensure_kubectl(self):
        """kubectl 이 없으면 k3s 로 심볼릭 링크 (실패해도 계속)"""
        if shutil.which("kubectl"):
            return
        try:
            if os.path.lexists(KUBECTL_LINK):
                os.remove(KUBECTL_LINK)
            os.symlink(K3S_BINARY, KUBECTL_LINK)
            self.logger.debug(f"Linked {KUBECTL_LINK} -> {K3S_BINARY}")
        except OSError as e:
            self.logger.warning(f"Could not create kubectl link: {e}")

    def api_ready(self) -> bool:
        result = run_command(["k3s", "kubectl", "get", "nodes"], check=False)
        return result.returncode == 0

    def wait_for_api(self, attempts: int = 60, interval: float = 2) -> bool:
        """API 준비 대기. 제한 초과 시 경고만 남기고 False"""
        console.print("[cyan]API 준비 대기 중...[/cyan]")
        self.logger.info("Waiting for API to become ready...")

        for attempt in range(1, attempts + 1):
            if self.api_ready():
                self.logger.info(f"API ready after {attempt} attempt(s)")
                return True
            if attempt < attempts:
                time.sleep(interval)

        self.logger.warning(f"API not ready after {attempts} attempts; continuing anyway")
        return False
