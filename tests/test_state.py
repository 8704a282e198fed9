"""
상태 저장소 테스트
"""

import os
import stat

from k3s_autoinstall.state import ClusterJoinState, StateStore


def test_load_missing_file_returns_empty_state(tmp_path):
    store = StateStore(str(tmp_path / "state"))
    state = store.load()
    assert state == ClusterJoinState()
    assert not state.has_master_url
    assert not state.has_join_token


def test_save_and_load(tmp_path):
    """저장 후 다시 읽기"""
    store = StateStore(str(tmp_path / "state"))
    store.save(ClusterJoinState("https://192.168.1.5:6443", "K10abc::server:xyz", "10.100.3.4"))

    with open(store.path) as f:
        content = f.read()
    assert "MASTER_URL=https://192.168.1.5:6443" in content
    assert "K3S_TOKEN=K10abc::server:xyz" in content
    assert "WG_SELF=10.100.3.4" in content

    state = store.load()
    assert state.master_url == "https://192.168.1.5:6443"
    assert state.join_token == "K10abc::server:xyz"
    assert state.vpn_self_address == "10.100.3.4"


def test_state_file_is_private(tmp_path):
    """토큰이 들어 있으므로 0600"""
    store = StateStore(str(tmp_path))
    store.save(ClusterJoinState("https://10.0.0.1:6443", "token"))
    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o600


def test_missing_vpn_address_is_not_written(tmp_path):
    store = StateStore(str(tmp_path))
    store.save(ClusterJoinState("https://10.0.0.1:6443", "token"))
    assert "WG_SELF" not in store.read_raw()


def test_parses_comments_quotes_and_export(tmp_path):
    path = tmp_path / "local.env"
    path.write_text(
        "# written by hand\n"
        "\n"
        "export MASTER_URL=\"https://10.0.0.81:6443\"\n"
        "K3S_TOKEN='abc=def'\n"
        "WG_SELF=\n"
    )
    state = StateStore(str(tmp_path)).load()
    assert state.master_url == "https://10.0.0.81:6443"
    assert state.join_token == "abc=def"
    assert state.vpn_self_address is None


def test_merged_prefers_other_values():
    base = ClusterJoinState("https://a:6443", "t1", None)
    merged = base.merged(ClusterJoinState(None, "t2", "10.100.0.9"))
    assert merged == ClusterJoinState("https://a:6443", "t2", "10.100.0.9")
