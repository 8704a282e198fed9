"""
호스트 정보 수집 모듈
호스트명, 기본 인터페이스, LAN IP, 서브넷, 게이트웨이
"""

import socket
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import AutoinstallError
from .logger import get_logger
from .shell import run_command


@dataclass(frozen=True)
class NodeConfig:
    """노드 네트워크 정보 (실행 중 불변)"""
    hostname: str
    lan_interface: str
    lan_ip: str
    subnet_cidr: str
    gateway: str


def parse_default_route(output: str) -> Tuple[Optional[str], Optional[str]]:
    """`ip -o -4 route show to default` 출력에서 (인터페이스, 게이트웨이) 추출"""
    for line in output.splitlines():
        fields = line.split()
        if not fields or fields[0] != "default":
            continue
        iface = fields[fields.index("dev") + 1] if "dev" in fields else None
        gateway = fields[fields.index("via") + 1] if "via" in fields else None
        return iface, gateway
    return None, None


def parse_interface_address(output: str) -> Optional[str]:
    """`ip -o -4 addr show <iface>` 출력에서 첫 번째 CIDR 주소 추출"""
    for line in output.splitlines():
        fields = line.split()
        if "inet" in fields:
            return fields[fields.index("inet") + 1]
    return None


class HostProber:
    """로컬 네트워크 스택 조회 클래스"""

    def __init__(self):
        self.logger = get_logger()

    def probe(self) -> NodeConfig:
        hostname = socket.gethostname()

        route = run_command(["ip", "-o", "-4", "route", "show", "to", "default"])
        iface, gateway = parse_default_route(route.stdout)
        if not iface:
            raise AutoinstallError("No default IPv4 route found; cannot determine LAN interface")

        addr = run_command(["ip", "-o", "-4", "addr", "show", iface])
        cidr = parse_interface_address(addr.stdout)
        if not cidr:
            raise AutoinstallError(f"Interface {iface} has no IPv4 address")

        node = NodeConfig(
            hostname=hostname,
            lan_interface=iface,
            lan_ip=cidr.split("/")[0],
            subnet_cidr=cidr,
            gateway=gateway or "",
        )
        self.logger.info(f"Host: {node.hostname}  LAN: {node.lan_ip} ({node.subnet_cidr}), GW: {node.gateway}")
        return node
