"""
k3s Autoinstall
단일 노드 또는 멀티 노드 k3s 클러스터를 부트스트랩하는 설치 도구

Features:
- 마스터/워커 역할 자동 판별 (클러스터 초기화 / 컨트롤 플레인 조인 / 워커 조인)
- WireGuard 기반 메시 VPN 선택적 구성
- Longhorn, Portainer, kube-prometheus-stack 애드온 자동 배포
- 재실행 시 idempotent 동작
- 설치 결과 요약 리포트 생성
"""

__version__ = "1.0.0"
__author__ = "DevOps Team"
