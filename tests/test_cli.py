"""Tests for the command-line entry point."""

import json

import pytest

import omnirec_picker.cli as cli
from omnirec_picker.consent import Decision


@pytest.fixture(autouse=True)
def no_log_file(monkeypatch):
    monkeypatch.setenv("OMNIREC_PICKER_LOG_FILE", "")


def test_parse_defaults():
    ns = cli.create_argument_parser().parse_args([])
    assert ns.dry_run is False
    assert ns.source_type == "monitor"
    assert ns.source_id == "DP-1"


def test_rejects_unknown_source_type():
    with pytest.raises(SystemExit):
        cli.create_argument_parser().parse_args(["--source-type", "tablet"])


def test_print_defaults(capsys):
    assert cli.main(["--print-defaults"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["fallback_picker"] == "hyprland-share-picker"
    assert data["read_timeout_ms"] == 5000


def test_print_event_catalog(capsys):
    assert cli.main(["--print-event-catalog"]) == 0
    catalog = json.loads(capsys.readouterr().out)["catalog"]
    assert "token.stored" in [entry["event_type"] for entry in catalog]


def test_validate_config_reports_errors(tmp_path, capsys):
    path = tmp_path / "picker.yaml"
    path.write_text("consent_backend: qt\n")
    assert cli.main(["--config", str(path), "--validate-config"]) == 1
    assert "consent_backend must be one of" in capsys.readouterr().err


def test_validate_config_unparseable_file(tmp_path, capsys):
    path = tmp_path / "picker.yaml"
    path.write_text("consent_backend: [\n")
    assert cli.main(["--config", str(path), "--validate-config"]) == 1
    assert "Failed to parse config file" in capsys.readouterr().err


@pytest.mark.parametrize("decision, expected", [
    (Decision.ALWAYS_ALLOW, 0),
    (Decision.DENIED, 1),
])
def test_dry_run_uses_selected_provider(monkeypatch, capsys, decision, expected):
    asked = []

    class Provider:
        def ask(self, description):
            asked.append(description)
            return decision

    monkeypatch.setattr(cli, "select_provider", lambda config: Provider())
    assert cli.main(["--dry-run", "--source-type", "window", "--source-id", "0x1234"]) == expected
    assert asked == ["Window: 0x1234"]
    assert capsys.readouterr().out == ""


def test_normal_mode_runs_workflow(monkeypatch, tmp_path, make_script, capsys):
    picker = make_script("echo '[SELECTION]/screen:eDP-1'")
    monkeypatch.setenv("OMNIREC_PICKER_SOCKET_PATH", str(tmp_path / "absent.sock"))
    monkeypatch.setenv("OMNIREC_FALLBACK_PICKER", str(picker))

    assert cli.main([]) == 0
    assert capsys.readouterr().out == "[SELECTION]/screen:eDP-1\n"
