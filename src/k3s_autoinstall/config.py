"""
설정 관리 모듈
YAML/JSON 기반 설정 파일, 환경 변수 오버라이드 및 기본값 제공
"""

import os
import yaml
import json
import ipaddress
from typing import Dict, Any, List, Mapping, Optional
from dataclasses import dataclass, field, asdict


@dataclass
class ClusterConfig:
    """클러스터 설정"""
    master_url: str = ""  # 예: https://10.0.0.81:6443 (LAN) 또는 https://10.100.0.1:6443 (VPN)
    master_public_ip: str = ""  # NAT 뒤의 마스터를 외부에서 접근할 때만 사용
    token: str = ""  # 첫 번째 마스터에서 생성됨
    probe_address: str = "10.0.0.81"
    api_port: int = 6443
    install_url: str = "https://get.k3s.io"


@dataclass
class VPNConfig:
    """WireGuard VPN 설정"""
    enabled: bool = False
    port: int = 51820
    network: str = "10.100.0.0/16"
    self_address: str = ""  # 비워두면 호스트명에서 결정
    interface: str = "wg0"
    config_dir: str = "/etc/wireguard"


@dataclass
class AddonsConfig:
    """애드온 설정 (컨트롤 플레인 노드에서만 적용)"""
    enabled: bool = True
    manifest_dir: str = ""  # 비워두면 패키지에 포함된 매니페스트 사용
    longhorn_manifest: str = "https://raw.githubusercontent.com/longhorn/longhorn/v1.6.2/deploy/longhorn.yaml"
    helm_repo_name: str = "prometheus-community"
    helm_repo_url: str = "https://prometheus-community.github.io/helm-charts"
    helm_chart: str = "prometheus-community/kube-prometheus-stack"
    helm_release: str = "kube-prom"
    helm_namespace: str = "monitoring"


@dataclass
class AgentConfig:
    """실행 환경 설정"""
    log_dir: str = "/var/log/k3s-autoinstall"
    log_level: str = "INFO"
    state_dir: str = "/etc/cluster-autoinstall"
    summary_files: list = field(default_factory=lambda: ["/tmp/cluster-summary.txt", "/root/cluster-info.txt"])
    install_packages: bool = True
    api_wait_attempts: int = 60
    api_wait_interval: int = 2
    probe_timeout: int = 2


TRUE_VALUES = ("1", "true", "yes", "on")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


class Config:
    """전체 설정 관리 클래스"""

    DEFAULT_CONFIG_PATHS = [
        "/etc/k3s-autoinstall/config.yaml",
        "~/.k3s-autoinstall/config.yaml",
        "./config.yaml",
    ]

    # 환경 변수 이름 -> (섹션, 키)
    ENV_OVERRIDES = {
        "WG_ENABLE": ("vpn", "enabled"),
        "WG_PORT": ("vpn", "port"),
        "WG_NET": ("vpn", "network"),
        "WG_SELF": ("vpn", "self_address"),
        "MASTER_URL": ("cluster", "master_url"),
        "MASTER_PUBLIC_IP": ("cluster", "master_public_ip"),
        "K3S_TOKEN": ("cluster", "token"),
    }

    SECTIONS = ("cluster", "vpn", "addons", "agent")

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.cluster = ClusterConfig()
        self.vpn = VPNConfig()
        self.addons = AddonsConfig()
        self.agent = AgentConfig()
        self.env_problems = []

        if config_path:
            self.load(config_path)
        else:
            self._load_from_default_paths()

    def _load_from_default_paths(self):
        """기본 경로에서 설정 파일 로드"""
        for path in self.DEFAULT_CONFIG_PATHS:
            expanded_path = os.path.expanduser(path)
            if os.path.exists(expanded_path):
                self.load(expanded_path)
                return

    def load(self, path: str):
        """설정 파일 로드"""
        path = os.path.expanduser(path)
        if not os.path.exists(path):
            return

        with open(path, 'r', encoding='utf-8') as f:
            if path.endswith('.json'):
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}

        self._update_from_dict(data)
        self.config_path = path

    def _update_from_dict(self, data: Dict[str, Any]):
        """딕셔너리에서 설정 업데이트 (알 수 없는 키는 무시)"""
        for section in self.SECTIONS:
            values = data.get(section) or {}
            target = getattr(self, section)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)

    def apply_env(self, environ: Optional[Mapping[str, str]] = None):
        """환경 변수로 설정 덮어쓰기 (빈 값은 무시)"""
        environ = os.environ if environ is None else environ
        for name, (section, key) in self.ENV_OVERRIDES.items():
            value = environ.get(name)
            if value is None or value == "":
                continue
            target = getattr(self, section)
            current = getattr(target, key)
            if isinstance(current, bool):
                value = _to_bool(value)
            elif isinstance(current, int):
                try:
                    value = int(value)
                except ValueError:
                    # validate() 에서 보고
                    self.env_problems.append(f"{name} must be an integer: {value}")
                    continue
            setattr(target, key, value)

    def validate(self) -> List[str]:
        """설정 값 검증. 문제 목록을 반환 (비어 있으면 정상)"""
        problems = list(self.env_problems)

        if self.cluster.master_url and not self.cluster.master_url.startswith(("https://", "http://")):
            problems.append(f"cluster.master_url must be a URL: {self.cluster.master_url}")

        try:
            network = ipaddress.ip_network(self.vpn.network, strict=False)
        except ValueError:
            problems.append(f"vpn.network is not a valid CIDR: {self.vpn.network}")
            network = None

        if self.vpn.self_address:
            try:
                address = ipaddress.ip_address(self.vpn.self_address)
                if network is not None and address not in network:
                    problems.append(f"vpn.self_address {address} is outside {network}")
            except ValueError:
                problems.append(f"vpn.self_address is not a valid IP: {self.vpn.self_address}")

        try:
            if not 0 < int(self.vpn.port) < 65536:
                problems.append(f"vpn.port out of range: {self.vpn.port}")
        except (TypeError, ValueError):
            problems.append(f"vpn.port must be an integer: {self.vpn.port}")

        if self.agent.api_wait_attempts < 1:
            problems.append("agent.api_wait_attempts must be at least 1")

        return problems

    def save(self, path: Optional[str] = None):
        """설정 파일 저장"""
        save_path = path or self.config_path or self.DEFAULT_CONFIG_PATHS[0]
        save_path = os.path.expanduser(save_path)

        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = self.to_dict()

        with open(save_path, 'w', encoding='utf-8') as f:
            if save_path.endswith('.json'):
                json.dump(data, f, indent=2)
            else:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True)

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {section: asdict(getattr(self, section)) for section in self.SECTIONS}

    def create_sample(self, output_path: str):
        """샘플 설정 파일 생성"""
        template = """# k3s Autoinstall Configuration File
# 환경 변수(WG_ENABLE, WG_PORT, WG_NET, WG_SELF, MASTER_URL, MASTER_PUBLIC_IP, K3S_TOKEN)가
# 설정되어 있으면 이 파일의 값보다 우선합니다.

# 클러스터 설정
cluster:
  master_url: ""  # 예: https://10.0.0.81:6443 (비워두면 자동 선택)
  master_public_ip: ""  # NAT 뒤의 마스터인 경우에만
  token: ""  # 첫 번째 마스터의 /var/lib/rancher/k3s/server/node-token
  probe_address: "10.0.0.81"  # LAN 에서 먼저 확인할 마스터 주소
  api_port: 6443
  install_url: "https://get.k3s.io"

# WireGuard VPN 설정
vpn:
  enabled: false
  port: 51820
  network: "10.100.0.0/16"
  self_address: ""  # 비워두면 호스트명 해시로 결정
  interface: "wg0"
  config_dir: "/etc/wireguard"

# 애드온 (컨트롤 플레인에서만 배포)
addons:
  enabled: true
  manifest_dir: ""  # 비워두면 내장 매니페스트 사용
  longhorn_manifest: "https://raw.githubusercontent.com/longhorn/longhorn/v1.6.2/deploy/longhorn.yaml"
  helm_release: "kube-prom"
  helm_namespace: "monitoring"

# 실행 환경
agent:
  log_dir: "/var/log/k3s-autoinstall"
  log_level: "INFO"  # DEBUG, INFO, WARNING, ERROR
  state_dir: "/etc/cluster-autoinstall"
  summary_files:
    - "/tmp/cluster-summary.txt"
    - "/root/cluster-info.txt"
  install_packages: true
  api_wait_attempts: 60
  api_wait_interval: 2
  probe_timeout: 2
"""

        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template)
