from __future__ import annotations

import json
from pathlib import Path

import pytest

import wbstock.main as cli
from wbstock.errors import ConfigError
from wbstock.main import (
    DEFAULT_CONFIG,
    _deep_merge,
    _load_config,
    build_settings,
    build_target,
    parse_args,
    render_result,
)
from wbstock.models import ProductStock, StockResult


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.article is None
    assert args.timeout is None
    assert args.legacy_output is False
    assert Path(args.config) == Path(cli.__file__).with_name("config.yml")


def test_shipped_config_matches_defaults() -> None:
    config = _load_config(Path(parse_args([]).config))
    assert config == DEFAULT_CONFIG


def test_parse_args_overrides() -> None:
    args = parse_args(["--article", "123", "--timeout", "2.5", "--legacy-output", "--headed"])
    assert args.article == 123
    assert args.timeout == 2.5
    assert args.legacy_output is True
    assert args.headed is True


def test_parse_args_rejects_non_positive_timeout() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--timeout", "0"])


def test_deep_merge_keeps_nested_defaults() -> None:
    merged = _deep_merge(DEFAULT_CONFIG, {"browser": {"viewport": {"width": 1024}}})
    assert merged["browser"]["viewport"] == {"width": 1024, "height": 800}
    assert merged["browser"]["wait_until"] == "load"
    assert DEFAULT_CONFIG["browser"]["viewport"]["width"] == 1200


def test_load_config_missing_file_uses_defaults(tmp_path) -> None:
    config = _load_config(tmp_path / "absent.yml")
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_load_config_reads_yaml(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("target:\n  article_id: 555\nmatcher:\n  response_timeout: 30\n", encoding="utf-8")
    config = _load_config(path)
    assert build_target(config).article_id == 555
    assert build_settings(config).response_timeout == 30.0


def test_load_config_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        _load_config(path)


def test_build_target_prefers_cli_article() -> None:
    target = build_target(DEFAULT_CONFIG, 42)
    assert target.url == "https://www.wildberries.ru/catalog/42/detail.aspx"


def test_build_target_requires_placeholder() -> None:
    config = _deep_merge(DEFAULT_CONFIG, {"target": {"url_template": "https://example.com/"}})
    with pytest.raises(ConfigError):
        build_target(config)


@pytest.mark.parametrize(
    "template",
    ["https://x/{lang}/{article_id}", "https://x/{0}/{article_id}", "https://x/{article_id}/{"],
)
def test_build_target_rejects_unknown_placeholders(template) -> None:
    config = _deep_merge(DEFAULT_CONFIG, {"target": {"url_template": template}})
    with pytest.raises(ConfigError):
        build_target(config)


def test_build_settings_defaults(monkeypatch) -> None:
    monkeypatch.setenv("WBSTOCK_STEALTH", "0")
    settings = build_settings(DEFAULT_CONFIG)
    assert settings.url_pattern == "/cards/v1/detail"
    assert settings.response_timeout is None
    assert (settings.viewport_width, settings.viewport_height) == (1200, 800)
    assert settings.headless is None
    assert settings.stealth is False


def test_build_settings_cli_overrides() -> None:
    settings = build_settings(DEFAULT_CONFIG, timeout=5, headed=True)
    assert settings.response_timeout == 5
    assert settings.headless is False


@pytest.mark.parametrize(
    "override",
    [
        {"browser": {"wait_until": "eventually"}},
        {"browser": {"viewport": {"width": 0}}},
        {"matcher": {"url_pattern": ""}},
        {"matcher": {"response_timeout": "soon"}},
    ],
)
def test_build_settings_rejects_bad_values(override) -> None:
    with pytest.raises(ConfigError):
        build_settings(_deep_merge(DEFAULT_CONFIG, override))


def test_render_result_tagged_and_legacy() -> None:
    result = StockResult.ok(7, [ProductStock(art=7, stock={"42": 3})])
    assert json.loads(render_result(result)) == {
        "status": "ok",
        "products": [{"art": 7, "stock": {"42": 3}}],
    }
    assert json.loads(render_result(result, legacy=True)) == [{"art": 7, "stock": {"42": 3}}]


@pytest.fixture()
def quiet_cli(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda: None)
    calls = []

    def install(result: StockResult) -> list:
        async def _fetch(target, settings):
            calls.append((target, settings))
            return result

        monkeypatch.setattr(cli, "fetch_stock", _fetch)
        return calls

    return install


def test_main_prints_default_envelope(quiet_cli, capsys, tmp_path) -> None:
    calls = quiet_cli(StockResult.empty(146972802))
    cli.main(["--config", str(tmp_path / "absent.yml"), "--legacy-output"])
    assert json.loads(capsys.readouterr().out) == {"art": 146972802, "stock": {}}
    assert calls[0][0].url == "https://www.wildberries.ru/catalog/146972802/detail.aspx"


def test_main_passes_cli_overrides_to_fetch(quiet_cli, capsys, tmp_path) -> None:
    calls = quiet_cli(StockResult.ok(9, [ProductStock(art=9, stock={"M": 1})]))
    cli.main(["--config", str(tmp_path / "absent.yml"), "--article", "9", "--timeout", "3"])
    target, settings = calls[0]
    assert target.article_id == 9
    assert settings.response_timeout == 3.0
    assert json.loads(capsys.readouterr().out)["status"] == "ok"


def test_main_exits_non_zero_on_error_result(quiet_cli, capsys, tmp_path) -> None:
    quiet_cli(StockResult.failed(146972802, "Malformed JSON body"))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "absent.yml")])
    assert excinfo.value.code == 1
    assert json.loads(capsys.readouterr().out)["status"] == "error"


@pytest.mark.parametrize(
    "body",
    [
        "browser:\n  wait_until: never\n",
        "target:\n  url_template: 'https://x/{lang}/{article_id}'\n",
    ],
)
def test_main_exits_with_config_error(quiet_cli, tmp_path, body) -> None:
    calls = quiet_cli(StockResult.empty(146972802))
    path = tmp_path / "config.yml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(path)])
    assert excinfo.value.code == 2
    assert calls == []
