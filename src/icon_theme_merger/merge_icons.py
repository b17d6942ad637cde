#!/usr/bin/env python3
import argparse
import logging
import sys

from icon_theme_merger.constants.theme_constants import EXIT_FAILURE
from icon_theme_merger.core.config.config_manager import (
    MergeConfig,
    build_merge_config,
    overrides_from_args,
)
from icon_theme_merger.core.logging import AppLogger
from icon_theme_merger.theme_merge.exceptions import (
    CommandLineError,
    MissingThemeIndexError,
    ThemeMergeError,
)
from icon_theme_merger.theme_merge.theme_merger import MergeResult, ThemeMerger

OVERRIDE_KEYS = ("out", "theme_name", "icon_themes", "hicolor", "remove_legacy_icons", "empty_dir")
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ArgumentParser(argparse.ArgumentParser):
    """使い方の誤りを SystemExit(2) ではなく CommandLineError として送出する。"""

    def error(self, message):
        self.print_usage(sys.stderr)
        raise CommandLineError(message)


def parse_args(argv=None):
    """
    コマンドライン引数をパースして返す。

    Returns:
        argparse.Namespace: パースされた引数オブジェクト。
    """
    parser = ArgumentParser(
        description="Merge several icon themes into a single theme made of symlinks."
    )
    parser.add_argument("--config", help="YAML config file (defaults to $ICON_MERGE_CONFIG)")
    parser.add_argument("--out", help="Output prefix; the theme is written to <out>/share/icons/<theme-name>")
    parser.add_argument("--theme-name", dest="theme_name", help="Name of the merged theme directory")
    parser.add_argument(
        "--icon-theme",
        dest="icon_themes",
        action="append",
        help="Theme root directory, lowest priority first (repeatable)",
    )
    parser.add_argument("--hicolor", help="Prefix containing share/icons/hicolor (always merged first)")
    parser.add_argument(
        "--remove-legacy-icons",
        dest="remove_legacy_icons",
        action="store_true",
        default=None,
        help="Replace every 'legacy' directory with a symlink to an empty directory",
    )
    parser.add_argument("--empty-dir", dest="empty_dir", help="Empty directory used for legacy directories")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="ログの詳細レベル（デフォルト: INFO）",
    )
    return parser.parse_args(argv)


def merge_icons(config: MergeConfig, logger=None) -> MergeResult:
    """
    設定に従ってアイコンテーマを統合し、統合テーマを書き出す。

    Args:
        config (MergeConfig): 実行設定
        logger (logging.Logger, optional): ロガーインスタンス

    Returns:
        MergeResult: 実行結果
    """
    if logger is None:
        logger = AppLogger(logger_name="merge_icons").get_logger()

    try:
        logger.debug(f"Merging {len(config.theme_roots)} themes into {config.theme_path}")
        return ThemeMerger(config, logger=logger).run()
    except ThemeMergeError:
        raise
    except Exception:
        logger.exception("An error occurred during merge_icons execution.")
        raise


def run_cli(args, logger, environ=None) -> MergeResult:
    """
    CLI 引数と logger を使って merge_icons を実行する。

    Args:
        args (argparse.Namespace): コマンドライン引数
        logger (logging.Logger): ロガーインスタンス
        environ (Mapping[str, str], optional): 参照する環境変数（None なら os.environ）
    """
    config = build_merge_config(
        getattr(args, "config", None),
        environ=environ,
        overrides=overrides_from_args(args, OVERRIDE_KEYS),
        logger=logger,
    )
    return merge_icons(config, logger=logger)


def report_missing_themes(error: MissingThemeIndexError) -> None:
    print("The following theme paths are invalid (missing index.theme)", file=sys.stderr)
    print("\n".join(f"  - {path}" for path in error.paths), file=sys.stderr)


def main(argv=None):
    """
    スクリプトのエントリーポイント。コマンドライン引数を受け取り、テーマ統合処理を実行する。
    """
    pre_parser = ArgumentParser(add_help=False)
    pre_parser.add_argument("--log-level", type=str.upper, default="INFO")
    try:
        level_name = pre_parser.parse_known_args(argv)[0].log_level
    except CommandLineError:
        # 誤りは parse_args() 側で報告する
        level_name = "INFO"

    logger = AppLogger(logger_name="merge_icons").get_logger()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    try:
        args = parse_args(argv)
        logger.setLevel(getattr(logging, args.log_level, logging.INFO))
        run_cli(args, logger)
    except MissingThemeIndexError as e:
        report_missing_themes(e)
        sys.exit(e.exit_code)
    except ThemeMergeError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
    except Exception:
        logger.exception("UnHandled exception occurred")
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
