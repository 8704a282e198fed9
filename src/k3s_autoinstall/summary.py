#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
k3s Autoinstall - 설치 결과 요약 리포트

노드 정보, 마스터 URL, 조인 토큰, 애드온 접속 주소를 정리하여
표준 출력과 지정된 파일에 기록합니다.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from jinja2 import Template

from .logger import get_logger
from .k3s import NODE_TOKEN_PATH


SUMMARY_TEMPLATE = """✅ Cluster node ready
────────────────────────────────────
Hostname: {{ hostname }}
Role: {{ role }}
LAN IP: {{ lan_ip }}
VPN IP: {{ vpn_ip or "disabled" }}
{% if vpn_public_key %}VPN Public Key: {{ vpn_public_key }}
{% endif %}Master URL: {{ master_url }}
K3S Token: {{ token or "(on masters: " ~ token_path ~ ")" }}
{% if is_master %}
📦 Portainer: https://{{ lan_ip }}:9443
📊 Grafana:   http://{{ lan_ip }}:3000 (admin / admin)
📈 Prometheus:http://{{ lan_ip }}:9090
💾 Longhorn:  http://{{ lan_ip }}:30400
{% if api_ready is false %}
⚠ API did not become ready in time; check `k3s kubectl get nodes`.
{% endif %}{% endif %}
Files saved:
  {{ state_file }}   (MASTER_URL, K3S_TOKEN, WG_SELF)
{% for path in files %}  {{ path }} (this summary)
{% endfor %}"""


@dataclass
class SummaryReport:
    """설치 결과 요약"""
    hostname: str
    lan_ip: str
    master_url: str
    is_master: bool
    state_file: str
    vpn_ip: Optional[str] = None
    vpn_public_key: Optional[str] = None
    token: Optional[str] = None
    api_ready: Optional[bool] = None
    files: List[str] = field(default_factory=list)

    @property
    def role(self) -> str:
        return "MASTER" if self.is_master else "WORKER"

    def render(self) -> str:
        return Template(SUMMARY_TEMPLATE).render(
            hostname=self.hostname,
            role=self.role,
            lan_ip=self.lan_ip,
            vpn_ip=self.vpn_ip,
            vpn_public_key=self.vpn_public_key,
            master_url=self.master_url,
            token=self.token,
            token_path=NODE_TOKEN_PATH,
            is_master=self.is_master,
            api_ready=self.api_ready,
            state_file=self.state_file,
            files=self.files,
        )

    def write(self, paths: Optional[List[str]] = None) -> List[str]:
        """요약을 파일로 저장. 저장에 성공한 경로 목록 반환"""
        logger = get_logger()
        paths = self.files if paths is None else paths
        text = self.render()
        written = []

        for path in paths:
            try:
                directory = os.path.dirname(path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(path, "w", encoding="utf-8") as f:
                    f.write(text + "\n")
                written.append(path)
            except OSError as e:
                logger.warning(f"Could not write summary to {path}: {e}")

        return written
