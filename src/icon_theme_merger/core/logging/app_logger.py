"""
core.logging.app_logger

プロジェクト全体で共通して使えるログユーティリティ。

- ロギング設定は YAML ファイルで読み込む（logging.config.dictConfig）
- Singleton パターンで logger インスタンスを管理
- 設定が見つからない場合は logging.basicConfig にフォールバック

探索優先順位:
1) 引数 config_file
2) 環境変数 ICON_MERGE_LOG_CONFIG
3) <project_root>/config/logging_config.yaml
4) <this_file_dir>/config/logging_config.yaml（パッケージ同梱）
"""

from __future__ import annotations

import atexit
import logging
import logging.config
import os
import sys
import threading
from pathlib import Path
from typing import Optional

import yaml

LOG_CONFIG_ENV = "ICON_MERGE_LOG_CONFIG"


class AppLogger:
    """
    アプリケーション用のロガー管理クラス（Singleton）。

    引数:
        project_root (Optional[str]): プロジェクトルートパス
        config_file (Optional[str]): 明示的にロギング設定ファイルを指定したい場合のパス
        logger_name (str): 作成するロガーの名前
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(
        self,
        project_root: Optional[str] = None,
        config_file: Optional[str] = None,
        logger_name: str = "icon_theme_merger",
    ):
        # 初期化済みなら logger_name だけ反映する
        if getattr(self, "_initialized", False):
            if getattr(self, "_logger_name", None) != logger_name:
                self.logger = logging.getLogger(logger_name)
                self._logger_name = logger_name
            return

        if project_root is None:
            project_root = os.getcwd()

        self.project_root = str(project_root)
        self._logger_name = logger_name

        resolved = self._resolve_logging_config_path(project_root=self.project_root, config_file=config_file)

        if resolved is not None:
            try:
                with resolved.open("r", encoding="utf-8") as f:
                    cfg = yaml.safe_load(f)
                if not isinstance(cfg, dict):
                    raise ValueError("Invalid config format (expected dict)")
                logging.config.dictConfig(cfg)
            except (yaml.YAMLError, ValueError, OSError) as e:
                print(f"Error loading logging config: {e}. Using default logging settings.", file=sys.stderr)
                logging.basicConfig(level=logging.INFO)
        else:
            logging.basicConfig(level=logging.INFO)

        self.config_path = resolved
        self.logger = logging.getLogger(logger_name)

        # プログラム終了時にクリーンアップを登録
        atexit.register(self.cleanup)

        self._initialized = True

    # -----------------------------
    # config path resolution
    # -----------------------------
    def _logging_config_candidates(self, project_root: str, config_file: Optional[str]) -> list[Path]:
        candidates: list[Path] = []

        if config_file:
            candidates.append(Path(config_file))

        env = os.getenv(LOG_CONFIG_ENV)
        if env:
            candidates.append(Path(env))

        if project_root:
            candidates.append(Path(project_root) / "config" / "logging_config.yaml")

        candidates.append(Path(__file__).resolve().parent / "config" / "logging_config.yaml")

        # de-dup while keeping order
        out: list[Path] = []
        seen: set[str] = set()
        for p in candidates:
            key = str(p)
            if key not in seen:
                seen.add(key)
                out.append(p)
        return out

    def _resolve_logging_config_path(self, project_root: str, config_file: Optional[str]) -> Optional[Path]:
        for p in self._logging_config_candidates(project_root=project_root, config_file=config_file):
            if p.is_file():
                return p
        return None

    # -----------------------------
    # logger facade (optional)
    # -----------------------------
    def _log(self, level: int, message: str):
        if self.isEnabledFor(level):
            self.logger.log(level, message)

    def info(self, message: str):
        self._log(logging.INFO, message)

    def error(self, message: str):
        self._log(logging.ERROR, message)

    def debug(self, message: str):
        self._log(logging.DEBUG, message)

    def warning(self, message: str):
        self._log(logging.WARNING, message)

    def critical(self, message: str):
        self._log(logging.CRITICAL, message)

    def set_level(self, level_name: str) -> None:
        """"DEBUG" などのレベル名でロガーのレベルを変更する（不明な名前は INFO）。"""
        self.logger.setLevel(getattr(logging, str(level_name).upper(), logging.INFO))

    def change_logger_name(self, new_name: str):
        self.logger = logging.getLogger(new_name)
        self._logger_name = new_name

    def get_logger(self):
        return self.logger

    def cleanup(self):
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)
            handler.close()

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)


# エイリアスとして公開
Logger = AppLogger
