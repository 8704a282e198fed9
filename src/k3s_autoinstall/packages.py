"""
기본 패키지 설치 모듈 (apt)
"""

from typing import List

from rich.console import Console

from .logger import get_logger
from .shell import run_command

console = Console()

BASE_PACKAGES = [
    "curl", "ca-certificates", "gnupg", "lsb-release", "apt-transport-https",
    "net-tools", "iproute2", "iptables", "nftables",
    "jq", "git", "coreutils", "sed", "grep", "gawk", "openssl",
    "socat", "conntrack", "ipset", "ebtables", "ethtool",
    "helm",  # kube-prometheus-stack 설치용
]

OPTIONAL_PACKAGES = ["nano"]

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class PackageManager:
    """apt 패키지 관리 클래스"""

    def __init__(self, packages: List[str] = None, optional: List[str] = None):
        self.packages = list(packages if packages is not None else BASE_PACKAGES)
        self.optional = list(optional if optional is not None else OPTIONAL_PACKAGES)
        self.logger = get_logger()

    def install_base(self):
        console.print("[cyan]기본 패키지 설치 중...[/cyan]")
        self.logger.info("Installing base dependencies...")

        run_command(["apt-get", "update", "-y"], env=APT_ENV)
        run_command(["apt-get", "install", "-y"] + self.packages, env=APT_ENV)

        # 선택 패키지는 실패해도 계속 진행
        if self.optional:
            result = run_command(["apt-get", "install", "-y"] + self.optional, env=APT_ENV, check=False)
            if result.returncode != 0:
                self.logger.warning(f"Optional packages not installed: {', '.join(self.optional)}")

        console.print("[green]✓ 기본 패키지 설치 완료[/green]")
