import os
import sys
from types import SimpleNamespace
from unittest import mock

import pytest

import icon_theme_merger.merge_icons as target_module
from icon_theme_merger.core.logging import AppLogger
from icon_theme_merger.merge_icons import main, parse_args, run_cli
from icon_theme_merger.theme_merge.exceptions import (
    ConfigError,
    MalformedThemeFileError,
    MissingThemeIndexError,
)


@pytest.fixture
def logger():
    return AppLogger(project_root=".", logger_name="test_merge_icons").get_logger()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in ("out", "themeName", "hicolor", "iconThemes", "removeLegacyIcons", "ICON_MERGE_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(target_module, "build_merge_config", _build_without_dotenv)


_real_build_merge_config = target_module.build_merge_config


def _build_without_dotenv(config_path=None, *, environ=None, overrides=None, logger=None):
    # テスト実行環境の .env を読み込まない
    if environ is None:
        environ = dict(os.environ)
    return _real_build_merge_config(config_path, environ=environ, overrides=overrides, logger=logger)


def _args(**kwargs):
    values = dict(
        config=None,
        out=None,
        theme_name=None,
        icon_themes=None,
        hicolor=None,
        remove_legacy_icons=None,
        empty_dir=None,
        log_level="INFO",
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


def test_parse_args_collects_repeated_themes():
    args = parse_args(
        ["--out", "/o", "--theme-name", "m", "--icon-theme", "/a", "--icon-theme", "/b", "--hicolor", "/hc"]
    )

    assert args.icon_themes == ["/a", "/b"]
    assert args.theme_name == "m"
    assert args.remove_legacy_icons is None
    assert args.log_level == "INFO"
    assert parse_args(["--remove-legacy-icons"]).remove_legacy_icons is True


def test_run_cli_basic(tmp_path, logger, theme_factory, hicolor_prefix):
    theme = theme_factory(
        tmp_path / "A",
        "A",
        directories=["16x16/apps"],
        contexts={"16x16/apps": "Applications"},
        icons={"16x16/apps": ["star.png"]},
    )
    args = _args(theme_name="merged", icon_themes=[str(theme)], hicolor=str(hicolor_prefix))
    environ = {"out": str(tmp_path / "out")}

    result = run_cli(args, logger, environ=environ)

    assert result.theme_path == tmp_path / "out" / "share" / "icons" / "merged"
    assert (result.theme_path / "index.theme").exists()
    assert (result.theme_path / "16x16" / "apps" / "star.png").is_symlink()


def test_run_cli_uses_environment_theme_list(tmp_path, logger, theme_factory, hicolor_prefix):
    a = theme_factory(tmp_path / "A", "A")
    b = theme_factory(tmp_path / "B", "B")
    environ = {
        "out": str(tmp_path / "out"),
        "themeName": "env-merged",
        "hicolor": str(hicolor_prefix),
        "iconThemes": f"{a} {b}",
    }

    result = run_cli(_args(), logger, environ=environ)

    assert [t.name for t in result.themes] == ["Hicolor", "A", "B"]
    assert result.descriptor.comment == "Merged icons from: B, A, Hicolor"


def test_run_cli_missing_settings(logger):
    with pytest.raises(ConfigError):
        run_cli(_args(), logger, environ={})


def test_run_cli_missing_theme_index(tmp_path, logger, hicolor_prefix):
    args = _args(
        out=str(tmp_path / "out"),
        theme_name="merged",
        hicolor=str(hicolor_prefix),
        icon_themes=[str(tmp_path / "missing")],
    )

    with pytest.raises(MissingThemeIndexError):
        run_cli(args, logger, environ={})

    assert not (tmp_path / "out").exists()


def test_main_reports_missing_themes_and_exits_2(tmp_path, hicolor_prefix, capsys):
    missing_a = tmp_path / "missing-a"
    missing_b = tmp_path / "missing-b"
    argv = [
        "--out", str(tmp_path / "out"),
        "--theme-name", "merged",
        "--hicolor", str(hicolor_prefix),
        "--icon-theme", str(missing_a),
        "--icon-theme", str(missing_b),
    ]

    with pytest.raises(SystemExit) as excinfo:
        main(argv)

    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "The following theme paths are invalid (missing index.theme)" in err
    assert f"  - {missing_a / 'index.theme'}" in err
    assert f"  - {missing_b / 'index.theme'}" in err
    assert not (tmp_path / "out").exists()


def test_main_exits_1_on_malformed_theme(tmp_path, hicolor_prefix):
    broken = tmp_path / "Broken"
    broken.mkdir()
    (broken / "index.theme").write_text("garbage line\n", encoding="utf-8")
    argv = [
        "--out", str(tmp_path / "out"),
        "--theme-name", "merged",
        "--hicolor", str(hicolor_prefix),
        "--icon-theme", str(broken),
    ]

    with pytest.raises(SystemExit) as excinfo:
        main(argv)

    assert excinfo.value.code == 1


def test_main_success_does_not_exit(tmp_path, hicolor_prefix):
    argv = ["--out", str(tmp_path / "out"), "--theme-name", "merged", "--hicolor", str(hicolor_prefix)]

    main(argv)

    assert (tmp_path / "out" / "share" / "icons" / "merged" / "index.theme").exists()


def test_main_logs_exception_and_exits(monkeypatch):
    # モック logger
    mock_logger = mock.Mock()

    # merge_icons 関数を例外を投げるように置き換える
    monkeypatch.setattr(target_module, "merge_icons", mock.Mock(side_effect=RuntimeError("Mocked error")))
    monkeypatch.setattr(target_module, "build_merge_config", mock.Mock())

    # AppLogger.get_logger() がモック logger を返すように
    mock_app_logger = mock.Mock()
    mock_app_logger.get_logger.return_value = mock_logger
    monkeypatch.setattr(target_module, "AppLogger", mock.Mock(return_value=mock_app_logger))

    # sys.exit をモック
    monkeypatch.setattr(sys, "exit", mock.Mock())

    target_module.main(["--log-level", "DEBUG"])

    mock_logger.exception.assert_called_once_with("UnHandled exception occurred")
    sys.exit.assert_called_once_with(1)


def test_merge_icons_logs_and_reraises(make_config, tmp_path, monkeypatch):
    mock_logger = mock.Mock()
    monkeypatch.setattr(
        target_module.ThemeMerger,
        "run",
        lambda self: (_ for _ in ()).throw(RuntimeError("Test error")),
    )

    with pytest.raises(RuntimeError, match="Test error"):
        target_module.merge_icons(make_config(), logger=mock_logger)

    mock_logger.exception.assert_called_once()


def test_parse_args_accepts_lower_case_log_level():
    assert parse_args(["--log-level", "debug"]).log_level == "DEBUG"


@pytest.mark.parametrize("argv", [["--log-level", "verbose"], ["--no-such-option"], ["--out"]])
def test_main_usage_error_exits_1(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)

    # 2 は index.theme 欠落専用
    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_main_lower_case_log_level_reaches_merge(tmp_path, hicolor_prefix):
    argv = [
        "--log-level", "debug",
        "--out", str(tmp_path / "out"),
        "--theme-name", "merged",
        "--hicolor", str(hicolor_prefix),
    ]

    main(argv)

    assert (tmp_path / "out" / "share" / "icons" / "merged" / "index.theme").exists()


def test_merge_icons_does_not_log_traceback_for_known_errors(tmp_path, make_config):
    mock_logger = mock.Mock()
    broken = tmp_path / "Broken"
    broken.mkdir()
    (broken / "index.theme").write_text("Name=Broken\n", encoding="utf-8")

    with pytest.raises(MalformedThemeFileError):
        target_module.merge_icons(make_config([broken]), logger=mock_logger)

    mock_logger.exception.assert_not_called()
