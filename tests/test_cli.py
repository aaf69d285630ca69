from __future__ import annotations

import json

from levelforge.main import main
from levelforge.rooms import ConnectivitySignature
from levelforge.templates import TemplateStore


def test_seed_templates_writes_every_signature(tmp_path, capsys):
    out = tmp_path / "rooms"
    assert main(["seed-templates", "--out", str(out), "--theme", "Cave"]) == 0
    assert "Wrote 16 templates for theme Cave" in capsys.readouterr().out

    store = TemplateStore.load_directory(out)
    assert len(store) == 16
    assert store.missing_signatures("Cave") == []


def test_seed_templates_auto_index_keeps_existing_files(tmp_path):
    out = tmp_path / "rooms"
    main(["seed-templates", "--out", str(out)])
    main(["seed-templates", "--out", str(out), "--auto-index"])
    store = TemplateStore.load_directory(out)
    assert len(store.templates("Theme1", ConnectivitySignature.parse("UO_RO_DO_LO"))) == 2


def test_generate_json(config_file, capsys):
    assert main(["generate", "--config", str(config_file), "--format", "json"]) == 0
    payload = json.loads(capsys.readouterr().out)

    assert payload["theme"] == "Theme1"
    assert payload["seed"] == 99
    assert payload["rooms"]["height"] == 2
    assert len(payload["templates"]) == payload["rooms"]["width"] * payload["rooms"]["height"]
    assert payload["path"][0][0] == 0
    assert payload["spawn"] is not None


def test_generate_seed_flag_overrides_config(config_file, capsys):
    main(["generate", "--config", str(config_file), "--format", "json", "--seed", "5"])
    assert json.loads(capsys.readouterr().out)["seed"] == 5


def test_generate_ascii(config_file, capsys):
    assert main(["generate", "--config", str(config_file)]) == 0
    out = capsys.readouterr().out
    assert "S" in out
    assert "#" in out


def test_generate_reports_missing_templates(config_file, tmp_path, capsys):
    empty = tmp_path / "empty"
    empty.mkdir()
    assert main(["generate", "--config", str(config_file), "--templates", str(empty)]) == 1
    assert "error: No room template for theme 'Theme1'" in capsys.readouterr().err


def test_generate_reports_missing_config(tmp_path, capsys):
    assert main(["generate", "--config", str(tmp_path / "nope.toml")]) == 1
    assert "error:" in capsys.readouterr().err
