"""
마스터 API 엔드포인트 선택 모듈
명시적 지정 > LAN 프로브 성공 주소 > VPN 주소 > 로컬 LAN IP 순으로 선택
"""

from typing import Callable, Optional

from .logger import get_logger
from .network import NetworkChecker

API_PORT = 6443

Probe = Callable[[str, int], bool]


def api_url(address: str, port: int = API_PORT) -> str:
    return f"https://{address}:{port}"


def select_master_endpoint(explicit_override: Optional[str],
                           probe_target: Optional[str],
                           vpn_self_address: Optional[str],
                           lan_ip: str,
                           probe: Probe,
                           port: int = API_PORT) -> str:
    """마스터 URL 선택 (첫 번째로 일치하는 항목 사용)

    probe 는 (host, port) 를 받아 도달 가능 여부를 반환한다. 부수 효과는 이 호출뿐이다.
    vpn_self_address 는 VPN 이 활성화된 경우에만 전달해야 한다.
    """
    if explicit_override:
        return explicit_override

    if probe_target and probe(probe_target, port):
        return api_url(probe_target, port)

    if vpn_self_address:
        return api_url(vpn_self_address, port)

    return api_url(lan_ip, port)


class EndpointSelector:
    """설정과 네트워크 체커를 묶은 엔드포인트 선택기"""

    def __init__(self, probe_target: Optional[str], lan_ip: str,
                 port: int = API_PORT, timeout: float = 2,
                 checker: Optional[NetworkChecker] = None):
        self.probe_target = probe_target
        self.lan_ip = lan_ip
        self.port = port
        self.timeout = timeout
        self.checker = checker or NetworkChecker()
        self.logger = get_logger()

    def _probe(self, host: str, port: int) -> bool:
        return self.checker.is_reachable(host, port, self.timeout)

    def select(self, explicit_override: Optional[str] = None,
               vpn_self_address: Optional[str] = None) -> str:
        url = select_master_endpoint(
            explicit_override,
            self.probe_target,
            vpn_self_address,
            self.lan_ip,
            self._probe,
            self.port,
        )
        self.logger.info(f"Selected master URL: {url}")
        return url
