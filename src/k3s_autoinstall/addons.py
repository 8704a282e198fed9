"""
애드온 배포 모듈 (컨트롤 플레인 전용)
Longhorn, 기본 StorageClass, Portainer, kube-prometheus-stack 을 정해진 순서로 적용
"""

import os
from typing import Callable, Dict, List, Tuple

from rich.console import Console

from .logger import get_logger
from .shell import run_command

console = Console()

BUNDLED_MANIFEST_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "addons")
K3S_KUBECONFIG = "/etc/rancher/k3s/k3s.yaml"

KUBECTL = ["k3s", "kubectl"]


class AddonDeployer:
    """애드온 배포 클래스

    롤백과 재시도는 하지 않는다. 각 단계 실패는 CommandError 로 전달된다.
    """

    def __init__(self, config: Dict, debug: bool = False):
        self.config = config
        self.debug = debug
        self.logger = get_logger()
        self.manifest_dir = config.get("manifest_dir") or BUNDLED_MANIFEST_DIR
        self.longhorn_manifest = config.get(
            "longhorn_manifest",
            "https://raw.githubusercontent.com/longhorn/longhorn/v1.6.2/deploy/longhorn.yaml",
        )
        self.helm_repo_name = config.get("helm_repo_name", "prometheus-community")
        self.helm_repo_url = config.get("helm_repo_url", "https://prometheus-community.github.io/helm-charts")
        self.helm_chart = config.get("helm_chart", "prometheus-community/kube-prometheus-stack")
        self.helm_release = config.get("helm_release", "kube-prom")
        self.helm_namespace = config.get("helm_namespace", "monitoring")
        self.helm_env = {"KUBECONFIG": K3S_KUBECONFIG}

    def manifest(self, name: str) -> str:
        return os.path.join(self.manifest_dir, name)

    def kubectl_apply(self, source: str):
        run_command(KUBECTL + ["apply", "-f", source])

    def label_control_plane(self):
        console.print("[cyan]노드 역할 레이블 지정 중...[/cyan]")
        self.logger.info("Labeling node roles...")
        node = run_command(
            KUBECTL + ["get", "nodes", "-o", "jsonpath={.items[0].metadata.name}"]
        ).stdout.strip()
        run_command(KUBECTL + ["label", "node", node,
                               "node-role.kubernetes.io/control-plane=true", "--overwrite"])

    def deploy_longhorn(self):
        console.print("[cyan]Longhorn 배포 중 (CRDs + UI)...[/cyan]")
        self.logger.info("Deploying Longhorn (CRDs + UI)...")
        self.kubectl_apply(self.longhorn_manifest)

    def deploy_storage_class(self):
        # 3 replica 기본 StorageClass
        self.kubectl_apply(self.manifest("longhorn-storageclass.yaml"))

    def deploy_longhorn_ui(self):
        self.kubectl_apply(self.manifest("longhorn-ui.yaml"))

    def deploy_portainer(self):
        console.print("[cyan]Portainer 배포 중 (9443)...[/cyan]")
        self.logger.info("Deploying Portainer (9443)...")
        self.kubectl_apply(self.manifest("portainer.yaml"))

    def deploy_monitoring(self):
        console.print("[cyan]kube-prometheus-stack 설치 중 (Helm)...[/cyan]")
        self.logger.info("Installing kube-prometheus-stack via Helm...")
        run_command(["helm", "repo", "add", self.helm_repo_name, self.helm_repo_url], env=self.helm_env)
        run_command(["helm", "repo", "update"], env=self.helm_env)
        run_command([
            "helm", "upgrade", "--install", self.helm_release, self.helm_chart,
            "--namespace", self.helm_namespace, "--create-namespace",
            "-f", self.manifest("kube-prom-stack.values.yaml"),
        ], env=self.helm_env)

    def steps(self) -> List[Tuple[str, Callable[[], None]]]:
        """배포 순서"""
        return [
            ("label-control-plane", self.label_control_plane),
            ("longhorn", self.deploy_longhorn),
            ("longhorn-storageclass", self.deploy_storage_class),
            ("longhorn-ui", self.deploy_longhorn_ui),
            ("portainer", self.deploy_portainer),
            ("kube-prometheus-stack", self.deploy_monitoring),
        ]

    def deploy_all(self) -> List[str]:
        """모든 애드온 배포. 완료된 단계 이름 목록 반환"""
        console.print("\n[bold cyan]애드온 배포 시작...[/bold cyan]\n")
        completed = []
        for name, step in self.steps():
            step()
            completed.append(name)
            self.logger.debug(f"Add-on step done: {name}")

        console.print("[green]✓ 애드온 배포 완료[/green]")
        self.logger.info("Add-ons deployed.")
        return completed
