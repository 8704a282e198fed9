"""
CLI 메인 인터페이스
Click 및 Rich 기반 사용자 친화적 CLI
"""

import os
import sys
import click
from typing import Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .addons import AddonDeployer
from .config import Config
from .endpoint import EndpointSelector, api_url
from .errors import AutoinstallError, CommandError, ConfigurationError
from .host import HostProber, NodeConfig
from .k3s import K3sManager
from .logger import init_logger, get_logger
from .network import NetworkChecker
from .packages import PackageManager
from .roles import Action, Role, check_join_token, resolve
from .state import ClusterJoinState, StateStore
from .summary import SummaryReport
from .vpn import WireGuardManager

console = Console()


class Bootstrapper:
    """노드 부트스트랩 오케스트레이터

    순서: 상태 로드 -> 역할 판별 -> 패키지 -> 호스트 조회 -> VPN -> k3s 설치/조인
    -> (컨트롤 플레인) API 대기 -> 애드온 -> 요약
    """

    def __init__(self, config: Config, role: Role = Role.WORKER, debug: bool = False,
                 overrides: Optional[ClusterJoinState] = None,
                 skip_packages: bool = False,
                 state_store: Optional[StateStore] = None,
                 prober: Optional[HostProber] = None,
                 package_manager: Optional[PackageManager] = None,
                 k3s_manager: Optional[K3sManager] = None,
                 checker: Optional[NetworkChecker] = None):
        self.config = config
        self.role = Role(role)
        self.debug = debug
        self.overrides = overrides or ClusterJoinState()
        self.skip_packages = skip_packages or not config.agent.install_packages
        self.logger = get_logger()
        self.state_store = state_store or StateStore(config.agent.state_dir)
        self.prober = prober or HostProber()
        self.package_manager = package_manager or PackageManager()
        self.k3s_manager = k3s_manager or K3sManager(install_url=config.cluster.install_url, debug=debug)
        self.checker = checker or NetworkChecker(debug)
        self.vpn_manager = None
        self.execution_log = []

    def log_step(self, step: str, status: str, message: str = ""):
        """실행 단계 기록"""
        self.execution_log.append({
            "step": step,
            "status": status,
            "message": message
        })

    def show_summary(self):
        """실행 단계 표시"""
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("단계", style="cyan", width=28)
        table.add_column("상태", width=10)
        table.add_column("메시지")

        for log in self.execution_log:
            status_icon = {"success": "✓", "skipped": "-", "warning": "⚠"}.get(log["status"], "✗")
            color = {"success": "green", "skipped": "cyan", "warning": "yellow"}.get(log["status"], "red")
            table.add_row(log["step"], f"[{color}]{status_icon} {log['status']}[/{color}]", log["message"])

        console.print(table)

    def initial_join_state(self) -> ClusterJoinState:
        """설정 파일/환경 변수 < 상태 파일 < CLI 옵션 순으로 병합"""
        configured = ClusterJoinState(
            master_url=self.config.cluster.master_url or None,
            join_token=self.config.cluster.token or None,
            vpn_self_address=self.config.vpn.self_address or None,
        )
        stored = self.state_store.load()
        return configured.merged(stored).merged(self.overrides)

    def plan(self, join_state: ClusterJoinState) -> Action:
        """수행할 동작 결정. 토큰 누락 시 설치 전에 ConfigurationError"""
        action = resolve(self.role, self.k3s_manager.is_installed(), join_state)
        self.logger.info(f"Role: {self.role.value}, action: {action.value}")
        check_join_token(action, join_state)
        return action

    def setup_vpn(self, node: NodeConfig, join_state: ClusterJoinState) -> Optional[str]:
        if not self.config.vpn.enabled:
            self.log_step("WireGuard", "skipped", "disabled")
            return None

        vpn_config = self.config.to_dict()["vpn"]
        if join_state.vpn_self_address:
            vpn_config["self_address"] = join_state.vpn_self_address
        self.vpn_manager = WireGuardManager(vpn_config, node.hostname, self.debug)
        address = self.vpn_manager.setup()
        self.log_step("WireGuard", "success", address)
        return address

    def endpoint_selector(self, node: NodeConfig) -> EndpointSelector:
        return EndpointSelector(
            probe_target=self.config.cluster.probe_address or None,
            lan_ip=node.lan_ip,
            port=self.config.cluster.api_port,
            timeout=self.config.agent.probe_timeout,
            checker=self.checker,
        )

    def install(self, action: Action, node: NodeConfig, join_state: ClusterJoinState,
                vpn_address: Optional[str]) -> ClusterJoinState:
        """k3s 설치/조인 수행 후 갱신된 상태 반환"""
        self.k3s_manager.lan_ip = node.lan_ip
        self.k3s_manager.extra_tls_sans = [
            san for san in (self.config.cluster.master_public_ip, vpn_address)
            if san and san != node.lan_ip
        ]

        if action == Action.SKIP_ALREADY_INSTALLED:
            console.print("[green]✓ K3s 가 이미 설치되어 있습니다. 설치를 건너뜁니다.[/green]")
            self.logger.info("K3s already present; skipping install.")
            self.log_step("K3s 설치", "skipped", "already installed")
            return join_state

        if action == Action.INITIALIZE_CLUSTER:
            token = self.k3s_manager.install_server_cluster_init()
            new_state = ClusterJoinState(
                master_url=api_url(node.lan_ip, self.config.cluster.api_port),
                join_token=token,
                vpn_self_address=vpn_address if self.config.vpn.enabled else None,
            )
            self.state_store.save(new_state)
            self.log_step("클러스터 초기화", "success", new_state.master_url)
            return new_state

        master_url = self.endpoint_selector(node).select(join_state.master_url, vpn_address)
        if not join_state.master_url and master_url == api_url(node.lan_ip, self.config.cluster.api_port):
            # 조인 대상이 자기 자신의 LAN IP
            self.logger.warning(
                f"No master found; joining via this node's own address {master_url}. "
                "Set MASTER_URL (or cluster.probe_address) to the existing master."
            )
            self.log_step("마스터 선택", "warning", "fell back to own LAN IP")

        if action == Action.JOIN_AS_CONTROL_PLANE:
            self.k3s_manager.install_server_join(master_url, join_state.join_token)
            self.log_step("컨트롤 플레인 조인", "success", master_url)
        else:
            self.k3s_manager.install_agent(master_url, join_state.join_token)
            self.log_step("워커 조인", "success", master_url)

        return ClusterJoinState(master_url=master_url, join_token=join_state.join_token,
                                vpn_self_address=vpn_address)

    def deploy_addons(self) -> bool:
        """컨트롤 플레인에서 API 대기 후 애드온 배포. API 준비 여부 반환"""
        ready = self.k3s_manager.wait_for_api(
            attempts=self.config.agent.api_wait_attempts,
            interval=self.config.agent.api_wait_interval,
        )
        self.log_step("API 준비 대기", "success" if ready else "warning",
                      "ready" if ready else "timed out")

        if not self.config.addons.enabled:
            self.log_step("애드온", "skipped", "disabled")
            return ready

        deployer = AddonDeployer(self.config.to_dict()["addons"], self.debug)
        completed = deployer.deploy_all()
        self.log_step("애드온", "success", ", ".join(completed))
        return ready

    def run(self) -> SummaryReport:
        """메인 실행 로직. 오류는 호출자(CLI)가 종료 코드로 변환한다"""
        console.print(Panel.fit(
            "[bold cyan]k3s Autoinstall[/bold cyan]\n"
            f"역할: {self.role.value}",
            border_style="cyan"
        ))
        self.logger.info("=== Autoinstall started ===")

        join_state = self.initial_join_state()
        action = self.plan(join_state)

        if self.skip_packages:
            self.log_step("기본 패키지", "skipped", "")
        else:
            self.package_manager.install_base()
            self.log_step("기본 패키지", "success", "")

        node = self.prober.probe()
        self.log_step("호스트 조회", "success", f"{node.lan_ip} ({node.lan_interface})")

        vpn_address = self.setup_vpn(node, join_state)

        join_state = self.install(action, node, join_state, vpn_address)
        self.k3s_manager.ensure_kubectl()

        is_master = self.k3s_manager.is_server_active()
        api_ready = None
        if is_master:
            api_ready = self.deploy_addons()

        master_url = join_state.master_url or self.endpoint_selector(node).select(None, vpn_address)

        report = SummaryReport(
            hostname=node.hostname,
            lan_ip=node.lan_ip,
            master_url=master_url,
            is_master=is_master,
            state_file=self.state_store.path,
            vpn_ip=vpn_address,
            vpn_public_key=self.vpn_manager.get_public_key() if self.vpn_manager else None,
            token=join_state.join_token,
            api_ready=api_ready,
            files=list(self.config.agent.summary_files),
        )
        report.write()

        self.logger.info("=== Autoinstall completed ===")
        self.show_summary()
        console.print()
        console.print(report.render(), markup=False, highlight=False)
        console.print("\nDone.")
        return report


def require_root():
    """루트 권한 확인"""
    if os.geteuid() != 0:
        console.print("[red]이 명령은 root 권한이 필요합니다. sudo 로 실행해주세요.[/red]")
        sys.exit(1)


def load_config(config_path: Optional[str]) -> Config:
    cfg = Config(config_path)
    cfg.apply_env()
    return cfg


@click.group()
@click.version_option(version=__version__)
def cli():
    """k3s Autoinstall

    k3s 를 설치하고 새 클러스터를 초기화하거나 기존 클러스터에 조인합니다.
    """
    pass


@cli.command()
@click.option('--role', type=click.Choice([r.value for r in Role]), default=Role.WORKER.value,
              show_default=True, help='노드 역할')
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
@click.option('--master-url', help='마스터 API URL (자동 선택보다 우선)')
@click.option('--token', help='클러스터 조인 토큰')
@click.option('--skip-packages', is_flag=True, help='apt 기본 패키지 설치 건너뛰기')
@click.option('--debug', is_flag=True, help='디버그 모드')
def run(role, config, master_url, token, skip_packages, debug):
    """노드를 설치하고 클러스터를 초기화하거나 조인"""
    require_root()

    cfg = load_config(config)
    init_logger(cfg.agent.log_dir, cfg.agent.log_level, debug)
    logger = get_logger()
    logger.debug(f"Starting run command (role={role}, debug={debug})")

    problems = cfg.validate()
    if problems:
        for problem in problems:
            console.print(f"[red]✗ {problem}[/red]")
        sys.exit(1)

    overrides = ClusterJoinState(master_url=master_url or None, join_token=token or None)
    bootstrapper = Bootstrapper(cfg, Role(role), debug, overrides=overrides, skip_packages=skip_packages)

    try:
        bootstrapper.run()
    except ConfigurationError as e:
        console.print(f"[bold red]ERROR:[/bold red] {e}")
        logger.error(str(e))
        sys.exit(1)
    except CommandError as e:
        console.print(f"[bold red]✗ 외부 명령 실패 (rc={e.returncode}):[/bold red] {e.cmd}")
        if e.stderr:
            console.print(e.stderr)
        logger.error(str(e))
        bootstrapper.show_summary()
        sys.exit(e.returncode or 1)
    except AutoinstallError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]사용자에 의해 중단되었습니다.[/yellow]")
        logger.warning("Execution interrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print(f"[bold red]✗ 예상치 못한 오류: {e}[/bold red]")
        logger.error(f"Unexpected error: {type(e).__name__}: {e}")
        bootstrapper.show_summary()
        sys.exit(1)


@cli.command()
@click.argument('output', type=click.Path(), default='./config.yaml')
def init(output):
    """샘플 설정 파일 생성"""
    cfg = Config()
    cfg.create_sample(output)
    console.print(f"[green]✓ 샘플 설정 파일 생성: {output}[/green]")
    console.print("[cyan]설정 파일을 편집한 후 다음 명령어로 실행하세요:[/cyan]")
    console.print(f"[cyan]  k3s-autoinstall run --role master --config {output}[/cyan]")


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
def validate(config):
    """설정 파일 유효성 검사"""
    try:
        cfg = load_config(config)
    except Exception as e:
        console.print(f"[red]✗ 설정 파일 오류: {str(e)}[/red]")
        sys.exit(1)

    problems = cfg.validate()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("항목", style="cyan")
    table.add_column("값")

    table.add_row("마스터 URL", cfg.cluster.master_url or "[yellow]자동 선택[/yellow]")
    table.add_row("조인 토큰", "설정됨" if cfg.cluster.token else "[yellow]미설정[/yellow]")
    table.add_row("LAN 프로브 주소", cfg.cluster.probe_address or "-")
    table.add_row("VPN 활성화", "예" if cfg.vpn.enabled else "아니오")
    table.add_row("VPN 네트워크", cfg.vpn.network)
    table.add_row("애드온 배포", "예" if cfg.addons.enabled else "아니오")
    table.add_row("상태 디렉토리", cfg.agent.state_dir)

    console.print(table)

    if problems:
        for problem in problems:
            console.print(f"[red]✗ {problem}[/red]")
        sys.exit(1)

    console.print("[green]✓ 설정 파일이 유효합니다.[/green]")


@cli.command("show-state")
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
@click.option('--show-token', is_flag=True, help='토큰을 가리지 않고 표시')
def show_state(config, show_token):
    """저장된 클러스터 상태 보기"""
    cfg = load_config(config)
    store = StateStore(cfg.agent.state_dir)

    if not store.exists():
        console.print(f"[yellow]저장된 상태가 없습니다: {store.path}[/yellow]")
        return

    state = store.load()
    token = state.join_token or ""
    if token and not show_token:
        token = token[:6] + "…"

    table = Table(title=store.path)
    table.add_column("키", style="cyan")
    table.add_column("값")
    table.add_row("MASTER_URL", state.master_url or "-")
    table.add_row("K3S_TOKEN", token or "-")
    table.add_row("WG_SELF", state.vpn_self_address or "-")
    console.print(table)


def main():
    """메인 엔트리 포인트"""
    cli()


if __name__ == '__main__':
    main()
