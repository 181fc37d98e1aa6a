"""Tests for consent descriptions and provider selection."""

import pytest

from omnirec_picker.config import Config
from omnirec_picker.consent import Decision, describe_source, select_provider
from omnirec_picker.consent.external import ExternalDialogConsent


@pytest.mark.parametrize("source_type, expected", [
    ("monitor", "Display: DP-1"),
    ("window", "Window: DP-1"),
    ("region", "Region on: DP-1"),
    ("tablet", "Source: DP-1"),
])
def test_describe_source(source_type, expected):
    assert describe_source(source_type, "DP-1") == expected


@pytest.mark.parametrize("label, decision", [
    ("Always Allow", Decision.ALWAYS_ALLOW),
    ("Allow Once", Decision.ALLOW_ONCE),
    ("Deny", Decision.DENIED),
    ("", Decision.DENIED),
    ("Maybe", Decision.DENIED),
])
def test_external_dialog_maps_button_label(make_script, label, decision):
    script = make_script(f"echo '{label}'")
    assert ExternalDialogConsent(str(script)).ask("Display: DP-1") is decision


def test_external_dialog_receives_description(make_script, tmp_path):
    args_file = tmp_path / "args"
    script = make_script(f'printf "%s\\n" "$@" > {args_file}\necho "Allow Once"')
    ExternalDialogConsent(str(script)).ask("Window: 0x1234")
    args = args_file.read_text()
    assert "--buttons\nAlways Allow;Allow Once;Deny" in args
    assert "Window: 0x1234" in args


def test_external_dialog_missing_binary_denies(tmp_path):
    assert ExternalDialogConsent(str(tmp_path / "missing")).ask("Display: DP-1") is Decision.DENIED


def test_select_external_backend():
    provider = select_provider(Config(consent_backend="external", dialog_binary="my-dialog"))
    assert isinstance(provider, ExternalDialogConsent)
    assert provider.binary == "my-dialog"


def test_auto_backend_falls_back_when_gtk_unavailable(monkeypatch):
    monkeypatch.setattr("omnirec_picker.consent.dialog.gtk_available", lambda: False)
    provider = select_provider(Config(consent_backend="auto"))
    assert isinstance(provider, ExternalDialogConsent)


def test_auto_backend_prefers_gtk(monkeypatch):
    from omnirec_picker.consent.dialog import GtkConsent

    monkeypatch.setattr("omnirec_picker.consent.dialog.gtk_available", lambda: True)
    assert isinstance(select_provider(Config()), GtkConsent)


def test_decision_approved():
    assert Decision.ALWAYS_ALLOW.approved
    assert Decision.ALLOW_ONCE.approved
    assert not Decision.DENIED.approved
