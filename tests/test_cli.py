import json

import pytest
import yaml

from signalform import cli

pytestmark = pytest.mark.usefixtures("restore_root_logging")

CHART = {
    "name": "cpu",
    "program_text": "data('cpu.utilization').mean().publish('cpu')",
    "plot_type": "LineChart",
    "time_range": "-1h",
}


def _config(tmp_path, data, name="chart.yml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def _run(capsys, *argv):
    code = cli.main(list(argv))
    out = capsys.readouterr().out
    return code, out


def _lifecycle_args(op, config, state, server, kind="signalform_time_chart"):
    return [
        "--format", "json", op,
        "--kind", kind,
        "--config", config,
        "--state", state,
        "--auth-token", "TEST",
        "--api-url", server.base_url,
        "--app-url", "https://app.example",
        "--timeout-sec", "5",
    ]


def test_kinds_json(capsys):
    code, out = _run(capsys, "--format", "json", "kinds")
    assert code == cli.EXIT_OK
    kinds = {row["kind"] for row in json.loads(out)}
    assert "signalform_detector" in kinds and len(kinds) == 8


def test_kinds_table(capsys):
    code, out = _run(capsys, "kinds")
    assert code == cli.EXIT_OK
    assert "signalform_dashboard_group" in out


def test_validate_ok(tmp_path, capsys):
    code, _ = _run(capsys, "validate", "--kind", "signalform_time_chart", "--config", _config(tmp_path, CHART))
    assert code == cli.EXIT_OK


def test_validate_bad_config(tmp_path, capsys):
    bad = dict(CHART, plot_type="PieChart", time_range="-5M")
    code, _ = _run(capsys, "validate", "--kind", "signalform_time_chart", "--config", _config(tmp_path, bad))
    assert code == cli.EXIT_VALIDATION_ERROR


def test_validate_unknown_kind(tmp_path, capsys):
    code, _ = _run(capsys, "validate", "--kind", "signalform_alert", "--config", _config(tmp_path, CHART))
    assert code == cli.EXIT_VALIDATION_ERROR


def test_validate_missing_file(tmp_path, capsys):
    code, _ = _run(capsys, "validate", "--kind", "signalform_time_chart", "--config", str(tmp_path / "nope.yml"))
    assert code == cli.EXIT_VALIDATION_ERROR


def test_full_cycle_writes_state(tmp_path, capsys, sfx_server):
    config = _config(tmp_path, CHART)
    state_path = tmp_path / "state" / "cpu.json"

    code, out = _run(capsys, *_lifecycle_args("create", config, str(state_path), sfx_server))
    assert code == cli.EXIT_OK
    (row,) = json.loads(out)
    assert row["status"] == "Success" and row["action"] == "create"
    state = json.loads(state_path.read_text(encoding="utf-8"))
    assert state["id"] == row["id"]
    assert state["url"] == f"https://app.example/#/chart/{state['id']}"
    stored = sfx_server.objects[("chart", state["id"])]
    assert stored["options"]["time"] == {"range": 3600000, "type": "relative"}

    sfx_server.touch_from_ui("chart", state["id"], ms=60000)
    code, out = _run(capsys, *_lifecycle_args("read", config, str(state_path), sfx_server))
    assert code == cli.EXIT_OK
    (row,) = json.loads(out)
    assert row["synced"] is False
    assert row["status"] == "Needs update"

    code, out = _run(capsys, *_lifecycle_args("update", config, str(state_path), sfx_server))
    assert code == cli.EXIT_OK
    assert json.loads(state_path.read_text(encoding="utf-8"))["synced"] is True

    code, out = _run(capsys, *_lifecycle_args("delete", config, str(state_path), sfx_server))
    assert code == cli.EXIT_OK
    assert json.loads(state_path.read_text(encoding="utf-8"))["id"] == ""
    assert not sfx_server.objects


def test_missing_token_is_config_error(tmp_path, capsys, sfx_server):
    args = _lifecycle_args("create", _config(tmp_path, CHART), str(tmp_path / "s.json"), sfx_server)
    i = args.index("--auth-token")
    del args[i:i + 2]
    code, out = _run(capsys, *args)
    assert code == cli.EXIT_CONFIG_ERROR
    assert out == ""
    assert not (tmp_path / "s.json").exists()


def test_token_from_env(tmp_path, capsys, sfx_server, monkeypatch):
    monkeypatch.setenv("SFX_AUTH_TOKEN", "TEST")
    args = _lifecycle_args("create", _config(tmp_path, CHART), str(tmp_path / "s.json"), sfx_server)
    i = args.index("--auth-token")
    del args[i:i + 2]
    code, _ = _run(capsys, *args)
    assert code == cli.EXIT_OK


def test_api_error_exit_code_and_failed_row(tmp_path, capsys, sfx_server):
    config = _config(tmp_path, CHART)
    state_path = tmp_path / "cpu.json"
    assert _run(capsys, *_lifecycle_args("create", config, str(state_path), sfx_server))[0] == cli.EXIT_OK
    before = state_path.read_text(encoding="utf-8")

    sfx_server.fail_next = (500, {"message": "internal"})
    code, out = _run(capsys, *_lifecycle_args("update", config, str(state_path), sfx_server))
    assert code == cli.EXIT_API_ERROR
    (row,) = json.loads(out)
    assert row["status"] == "Failed"
    assert "returned status 500" in row["error"]
    assert state_path.read_text(encoding="utf-8") == before


def test_network_error_exit_code(tmp_path, capsys):
    args = [
        "create",
        "--kind", "signalform_text_chart",
        "--config", _config(tmp_path, {"name": "t", "markdown": "x"}),
        "--auth-token", "TEST",
        "--api-url", "http://127.0.0.1:9/v2",
        "--timeout-sec", "2",
    ]
    code, _ = _run(capsys, *args)
    assert code == cli.EXIT_NETWORK_ERROR


def test_log_file_written_per_kind_and_action(tmp_path, capsys):
    _run(capsys, "validate", "--kind", "signalform_time_chart", "--config", _config(tmp_path, CHART))
    logs = list((tmp_path / "logs").glob("signalform_time_chart-validate-*.log"))
    assert len(logs) == 1


def test_create_twice_keeps_the_first_object(tmp_path, capsys, sfx_server):
    config = _config(tmp_path, CHART)
    state_path = tmp_path / "cpu.json"
    assert _run(capsys, *_lifecycle_args("create", config, str(state_path), sfx_server))[0] == cli.EXIT_OK
    before = state_path.read_text(encoding="utf-8")

    code, out = _run(capsys, *_lifecycle_args("create", config, str(state_path), sfx_server))
    assert code == cli.EXIT_API_ERROR
    (row,) = json.loads(out)
    assert row["status"] == "Failed" and "already exists" in row["error"]
    assert state_path.read_text(encoding="utf-8") == before
    assert len(sfx_server.objects) == 1


def test_corrupt_state_file_is_validation_error(tmp_path, capsys, sfx_server):
    state_path = tmp_path / "cpu.json"
    state_path.write_text(json.dumps({"name": "cpu", "id": "X", "last_updated": "soon"}), encoding="utf-8")
    code, out = _run(capsys, *_lifecycle_args("read", _config(tmp_path, CHART), str(state_path), sfx_server))
    assert code == cli.EXIT_VALIDATION_ERROR
    assert out == ""
    assert sfx_server.requests == []


def test_drift_not_flagged_when_declared_unsynced(tmp_path, capsys, sfx_server):
    config = _config(tmp_path, dict(CHART, synced=False))
    state_path = tmp_path / "cpu.json"
    _run(capsys, *_lifecycle_args("create", config, str(state_path), sfx_server))
    state_id = json.loads(state_path.read_text(encoding="utf-8"))["id"]

    sfx_server.touch_from_ui("chart", state_id, ms=60000)
    code, out = _run(capsys, *_lifecycle_args("read", config, str(state_path), sfx_server))
    assert code == cli.EXIT_OK
    (row,) = json.loads(out)
    assert row["synced"] is False and row["status"] == "Success"
