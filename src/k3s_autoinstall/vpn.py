"""
VPN 관리 모듈 (WireGuard)
키 생성, wg0.conf 작성, wg-quick 서비스 활성화
"""

import hashlib
import ipaddress
import os
import shutil
from typing import Dict, Optional

from jinja2 import Template
from rich.console import Console

from .logger import get_logger
from .shell import run_command

console = Console()

WG_CONF_TEMPLATE = Template("""[Interface]
PrivateKey = {{ private_key }}
Address = {{ address }}/{{ prefixlen }}
ListenPort = {{ port }}
# Routing: prefer local LAN; VPN used only for {{ network }} (no 0.0.0.0/0)
PostUp = sysctl -w net.ipv4.ip_forward=1
SaveConfig = true
""")


def derive_vpn_address(hostname: str, network: str = "10.100.0.0/16") -> str:
    """호스트명 SHA-1 앞 2바이트를 네트워크 내 호스트 오프셋으로 사용

    10.100.0.0/16 에서는 10.100.<byte0>.<byte1> 이 된다.
    네트워크 주소와 브로드캐스트 주소는 반환하지 않는다.
    """
    net = ipaddress.ip_network(network, strict=False)
    digest = hashlib.sha1(hostname.encode("utf-8")).hexdigest()
    offset = int(digest[:4], 16) % net.num_addresses

    if net.num_addresses > 2:
        if offset == 0:
            offset = 1
        elif offset == net.num_addresses - 1:
            offset = net.num_addresses - 2

    return str(net.network_address + offset)


class WireGuardManager:
    """WireGuard 관리 클래스"""

    def __init__(self, config: Dict, hostname: str, debug: bool = False):
        self.config = config
        self.debug = debug
        self.logger = get_logger()
        self.hostname = hostname
        self.port = int(config.get("port", 51820))
        self.network = config.get("network", "10.100.0.0/16")
        self.interface = config.get("interface", "wg0")
        self.config_dir = config.get("config_dir", "/etc/wireguard")
        self.self_address = config.get("self_address") or None

    @property
    def private_key_path(self) -> str:
        return os.path.join(self.config_dir, "privatekey")

    @property
    def public_key_path(self) -> str:
        return os.path.join(self.config_dir, "publickey")

    @property
    def conf_path(self) -> str:
        return os.path.join(self.config_dir, f"{self.interface}.conf")

    def is_installed(self) -> bool:
        installed = shutil.which("wg") is not None
        self.logger.debug(f"WireGuard installed: {installed}")
        return installed

    def install(self):
        console.print("[cyan]WireGuard 설치 중...[/cyan]")
        self.logger.info("Installing WireGuard...")
        run_command(["apt-get", "install", "-y", "wireguard"],
                    env={"DEBIAN_FRONTEND": "noninteractive"})

    def resolve_address(self) -> str:
        """설정된 주소가 없으면 호스트명에서 결정"""
        if not self.self_address:
            self.self_address = derive_vpn_address(self.hostname, self.network)
            self.logger.debug(f"Derived VPN address {self.self_address} from hostname {self.hostname}")
        return self.self_address

    def _write_secret(self, path: str, content: str):
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content.strip() + "\n")

    def ensure_keys(self) -> str:
        """키 쌍이 없으면 생성 (idempotent). 개인키 반환"""
        os.makedirs(self.config_dir, mode=0o700, exist_ok=True)

        if not os.path.exists(self.private_key_path):
            self.logger.info("Generating WireGuard key pair...")
            private_key = run_command(["wg", "genkey"]).stdout.strip()
            self._write_secret(self.private_key_path, private_key)
            public_key = run_command(["wg", "pubkey"], input_text=private_key + "\n").stdout.strip()
            with open(self.public_key_path, "w", encoding="utf-8") as f:
                f.write(public_key + "\n")

        with open(self.private_key_path, "r", encoding="utf-8") as f:
            return f.read().strip()

    def render_config(self, private_key: str) -> str:
        net = ipaddress.ip_network(self.network, strict=False)
        return WG_CONF_TEMPLATE.render(
            private_key=private_key,
            address=self.resolve_address(),
            prefixlen=net.prefixlen,
            port=self.port,
            network=str(net),
        )

    def write_config(self, private_key: str):
        self._write_secret(self.conf_path, self.render_config(private_key))
        self.logger.debug(f"Wrote {self.conf_path}")

    def enable_service(self):
        unit = f"wg-quick@{self.interface}"
        run_command(["systemctl", "enable", unit])
        restarted = run_command(["systemctl", "restart", unit], check=False)
        if restarted.returncode != 0:
            run_command(["systemctl", "start", unit])

    def setup(self) -> str:
        """WireGuard 구성 전체 수행. VPN 자체 주소 반환"""
        console.print("\n[bold cyan]WireGuard 설정 시작...[/bold cyan]\n")

        if not self.is_installed():
            self.install()

        address = self.resolve_address()
        private_key = self.ensure_keys()
        self.write_config(private_key)
        self.enable_service()

        net = ipaddress.ip_network(self.network, strict=False)
        console.print(f"[green]✓ WireGuard up on {address}/{net.prefixlen}[/green]")
        self.logger.info(f"WireGuard up on {address}/{net.prefixlen}")
        return address

    def get_public_key(self) -> Optional[str]:
        if not os.path.exists(self.public_key_path):
            return None
        with open(self.public_key_path, "r", encoding="utf-8") as f:
            return f.read().strip()
