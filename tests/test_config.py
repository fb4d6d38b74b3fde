import yaml

from infostamp.config import DEFAULT_CONFIG, get_config_path, load_config, write_default_config


def test_load_config_missing_file_returns_defaults(tmp_path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg == DEFAULT_CONFIG
    cfg["image"]["padding"] = 99
    assert DEFAULT_CONFIG["image"]["padding"] == 20


def test_load_config_merges_nested_sections(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"image": {"padding": 8}, "skip_existing": False}), encoding="utf-8")

    cfg = load_config(path)
    assert cfg["image"]["padding"] == 8
    assert cfg["image"]["font_family"] == DEFAULT_CONFIG["image"]["font_family"]
    assert cfg["pdf"]["preset"] == "signature"
    assert cfg["skip_existing"] is False


def test_config_path_env_override(tmp_path, monkeypatch) -> None:
    target = tmp_path / "custom.yaml"
    monkeypatch.setenv("INFOSTAMP_CONFIG", str(target))
    assert get_config_path() == target

    written = write_default_config()
    assert written == target
    assert load_config() == DEFAULT_CONFIG


def test_write_default_config_keeps_existing_unless_forced(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("skip_existing: false\n", encoding="utf-8")

    write_default_config(path)
    assert load_config(path)["skip_existing"] is False

    write_default_config(path, force=True)
    assert load_config(path)["skip_existing"] is True
