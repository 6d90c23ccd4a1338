import json
import os
import signal
import subprocess

import pytest

from agv.forward import (
    ActiveForward,
    ForwardJson,
    ForwardSpec,
    Origin,
    clear_active,
    is_alive,
    kill_all_and_clear,
    kill_supervisor,
    parse_specs,
    read_active,
    validate_unique,
    write_active,
)


def test_parses_single_port():
    assert ForwardSpec.parse("8080") == ForwardSpec(8080, 8080)


def test_parses_host_guest():
    assert ForwardSpec.parse("8080:3000") == ForwardSpec(8080, 3000)


def test_trims_whitespace():
    assert ForwardSpec.parse("  8080:3000  ") == ForwardSpec(8080, 3000)


@pytest.mark.parametrize("raw", ["", "   "])
def test_rejects_empty(raw):
    with pytest.raises(ValueError):
        ForwardSpec.parse(raw)


@pytest.mark.parametrize("raw", ["0", "8080:0"])
def test_rejects_zero_port(raw):
    with pytest.raises(ValueError, match="port 0"):
        ForwardSpec.parse(raw)


@pytest.mark.parametrize("raw", ["70000", "-1"])
def test_rejects_out_of_range(raw):
    with pytest.raises(ValueError):
        ForwardSpec.parse(raw)


@pytest.mark.parametrize("raw", ["abc", "80:xyz"])
def test_rejects_non_numeric(raw):
    with pytest.raises(ValueError):
        ForwardSpec.parse(raw)


@pytest.mark.parametrize("raw", ["80:", ":80"])
def test_rejects_missing_guest_with_colon(raw):
    with pytest.raises(ValueError):
        ForwardSpec.parse(raw)


@pytest.mark.parametrize("raw", ["53/udp", "80/tcp", "8080:3000/udp", "53/sctp"])
def test_rejects_proto_suffix_with_helpful_message(raw):
    with pytest.raises(ValueError) as info:
        ForwardSpec.parse(raw)
    msg = str(info.value)
    assert "protocol suffix" in msg
    assert "TCP" in msg


def test_display_roundtrip_single_port():
    s = ForwardSpec(8080, 8080)
    assert str(s) == "8080"
    assert s.to_short_string() == "8080"
    assert ForwardSpec.parse(str(s)) == s


def test_display_roundtrip_host_guest():
    s = ForwardSpec(8080, 3000)
    assert str(s) == "8080:3000"
    assert ForwardSpec.parse(s.to_short_string()) == s


def test_parse_specs_collects_all():
    specs = parse_specs(["8080", "3000:5000", "53"])
    assert specs == [ForwardSpec(8080, 8080), ForwardSpec(3000, 5000), ForwardSpec(53, 53)]


def test_parse_specs_reports_first_error():
    with pytest.raises(ValueError) as info:
        parse_specs(["8080", "not-a-port"])
    assert "not-a-port" in str(info.value)


def test_validate_unique_accepts_distinct_host_ports():
    specs = [ForwardSpec(8080, 8080), ForwardSpec(8081, 8080), ForwardSpec(9000, 3000)]
    assert validate_unique(specs) is None


def test_validate_unique_rejects_duplicate_host_port():
    with pytest.raises(ValueError, match="8080"):
        validate_unique([ForwardSpec(8080, 8080), ForwardSpec(8080, 3000)])


def test_active_forward_spec_roundtrip():
    entry = ActiveForward.from_spec(ForwardSpec(8080, 3000), Origin.ADHOC, 42)
    assert (entry.host, entry.guest, entry.origin, entry.pid) == (8080, 3000, Origin.ADHOC, 42)
    assert entry.spec() == ForwardSpec(8080, 3000)


def test_active_forwards_empty_when_missing(tmp_path):
    assert read_active(tmp_path / "forwards.toml") == []


def test_active_forwards_roundtrip(tmp_path):
    path = tmp_path / "forwards.toml"
    original = [
        ActiveForward.from_spec(ForwardSpec(8080, 8080), Origin.CONFIG, 12345),
        ActiveForward.from_spec(ForwardSpec(53, 53), Origin.ADHOC, 54321),
    ]
    write_active(path, original)
    assert read_active(path) == original


def test_active_forwards_empty_write_removes_file(tmp_path):
    path = tmp_path / "forwards.toml"
    write_active(path, [ActiveForward.from_spec(ForwardSpec(8080, 8080), Origin.CONFIG, 12345)])
    assert path.exists()
    write_active(path, [])
    assert not path.exists()


def test_read_active_rejects_malformed(tmp_path):
    path = tmp_path / "forwards.toml"
    path.write_text("[[active]]\nhost = 1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="failed to parse"):
        read_active(path)


def test_clear_active_is_idempotent(tmp_path):
    path = tmp_path / "forwards.toml"
    clear_active(path)
    assert not path.exists()
    write_active(path, [ActiveForward.from_spec(ForwardSpec(8080, 8080), Origin.CONFIG, 12345)])
    clear_active(path)
    assert not path.exists()


def _spawn_sleep():
    return subprocess.Popen(
        ["sleep", "30"],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def test_is_alive_for_self_and_invalid():
    assert is_alive(os.getpid()) is True
    assert is_alive(0) is False
    assert is_alive(2**31) is False


def test_kill_supervisor_terminates_alive_pid():
    child = _spawn_sleep()
    assert is_alive(child.pid)
    kill_supervisor(child.pid)
    code = child.wait(timeout=10)
    assert code == -signal.SIGTERM
    assert not is_alive(child.pid)


def test_kill_supervisor_tolerates_dead_pid():
    child = _spawn_sleep()
    kill_supervisor(child.pid)
    child.wait(timeout=10)
    kill_supervisor(child.pid)
    assert child.returncode == -signal.SIGTERM
    assert not is_alive(child.pid)


def test_kill_all_and_clear_kills_listed_pids(tmp_path):
    path = tmp_path / "forwards.toml"
    a = _spawn_sleep()
    b = _spawn_sleep()
    write_active(
        path,
        [
            ActiveForward.from_spec(ForwardSpec(8080, 8080), Origin.ADHOC, a.pid),
            ActiveForward.from_spec(ForwardSpec(9090, 9090), Origin.CONFIG, b.pid),
        ],
    )
    kill_all_and_clear(path)
    assert not path.exists()
    for child in (a, b):
        child.wait(timeout=10)
        assert child.returncode == -signal.SIGTERM
        assert not is_alive(child.pid)


def test_forward_json_schema_pin():
    entry = ForwardJson(host=8080, guest=8080, origin=Origin.CONFIG, alive=True)
    obj = json.loads(json.dumps(entry.to_dict()))
    assert set(obj) == {"alive", "guest", "host", "origin"}


@pytest.mark.parametrize(
    "origin,expected",
    [(Origin.CONFIG, "config"), (Origin.ADHOC, "adhoc"), (Origin.AUTO, "auto")],
)
def test_forward_json_origin_serializes_lowercase(origin, expected):
    entry = ForwardJson(host=1, guest=1, origin=origin, alive=True)
    assert json.loads(json.dumps(entry.to_dict()))["origin"] == expected
    assert str(origin) == expected


def test_forward_json_from_active_reports_liveness():
    live = ActiveForward.from_spec(ForwardSpec(8080, 3000), Origin.AUTO, os.getpid())
    dead = ActiveForward.from_spec(ForwardSpec(8081, 8081), Origin.AUTO, 0)
    assert ForwardJson.from_active(live) == ForwardJson(8080, 3000, Origin.AUTO, True)
    assert ForwardJson.from_active(dead).alive is False