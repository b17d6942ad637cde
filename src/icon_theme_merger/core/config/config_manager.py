"""
src/icon_theme_merger/core/config/config_manager.py

実行設定（MergeConfig）の構築。

優先順位（後ろが勝つ）:
1) YAML 設定ファイル（--config / ICON_MERGE_CONFIG、extends 対応）
2) 環境変数（.env も読み込む）: out / themeName / iconThemes / hicolor / removeLegacyIcons
3) CLI からの上書き
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import yaml
from dotenv import load_dotenv

from icon_theme_merger.constants.theme_constants import (
    DEFAULT_EMPTY_DIR,
    HICOLOR_THEME_SUBPATH,
    OUTPUT_ICONS_SUBPATH,
)
from icon_theme_merger.theme_merge.exceptions import ConfigError

CONFIG_PATH_ENV = "ICON_MERGE_CONFIG"

# 環境変数名 → 設定キー
ENV_KEYS = {
    "out": "out",
    "themeName": "theme_name",
    "iconThemes": "icon_themes",
    "hicolor": "hicolor",
    "removeLegacyIcons": "remove_legacy_icons",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class MergeConfig:
    """マージ 1 回分の設定。起動時に 1 度だけ構築してエンジンへ渡す。"""

    out: Path
    theme_name: str
    hicolor: Path
    icon_themes: List[Path] = field(default_factory=list)
    remove_legacy_icons: bool = False
    empty_dir: Path = Path(DEFAULT_EMPTY_DIR)

    @property
    def theme_path(self) -> Path:
        return self.out.joinpath(*OUTPUT_ICONS_SUBPATH, self.theme_name)

    @property
    def hicolor_root(self) -> Path:
        return self.hicolor.joinpath(*HICOLOR_THEME_SUBPATH)

    @property
    def theme_roots(self) -> List[Path]:
        """hicolor を先頭にした優先度昇順のテーマルート"""
        return [self.hicolor_root] + list(self.icon_themes)


# -------------------------
# Protocols (DI points)
# -------------------------
class ConfigSourceResolver(Protocol):
    def resolve_files(
        self,
        *,
        config_path: Optional[str],
        config_paths: Optional[List[str]],
        environ: Mapping[str, str],
    ) -> List[Path]: ...


class ConfigLoader(Protocol):
    def load(self, files: List[Path], *, logger: Any) -> Dict[str, Any]: ...


# -------------------------
# helpers
# -------------------------
def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be a mapping at top-level")
    return data


def _deep_merge(base: Any, override: Any) -> Any:
    if override is None:
        return base

    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            out[k] = _deep_merge(out.get(k), v) if k in out else v
        return out

    return override


def parse_bool(value: Any) -> bool:
    """YAML の bool、または "1"/"true"/"yes"/"on"（大文字小文字無視）を True とみなす。"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_STRINGS


def parse_path_list(value: Any) -> List[Path]:
    """リスト、または空白区切り文字列をパスのリストに変換する。"""
    if value is None:
        return []
    if isinstance(value, str):
        return [Path(p) for p in value.split()]
    if isinstance(value, (list, tuple)):
        return [Path(str(p)) for p in value]
    raise ConfigError(f"icon_themes must be a list or a whitespace separated string, got {value!r}")


# -------------------------
# Default implementations
# -------------------------
class DefaultConfigLoader:
    def load(self, files: List[Path], *, logger: Any) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in files:
            if logger:
                logger.debug(f"Reading config file: {p}")
            data = _read_yaml(p)
            data.pop("extends", None)
            merged = _deep_merge(merged, data)
        return merged


class DefaultConfigResolver:
    """
    明示指定 → ICON_MERGE_CONFIG の順で設定ファイルを決め、extends を展開する。
    どちらも無ければ設定ファイルは使わない（環境変数と CLI だけで構成する）。
    """

    def resolve_files(
        self,
        *,
        config_path: Optional[str],
        config_paths: Optional[List[str]],
        environ: Mapping[str, str],
    ) -> List[Path]:
        if config_paths:
            return self._expand_extends([Path(p) for p in config_paths])

        if config_path:
            return self._expand_extends([Path(config_path)])

        env_path = (environ.get(CONFIG_PATH_ENV) or "").strip()
        if env_path:
            return self._expand_extends([Path(env_path)])

        return []

    def _expand_extends(self, files: List[Path]) -> List[Path]:
        resolved: List[Path] = list(files)

        i = 0
        while i < len(resolved):
            p = resolved[i]
            if not p.exists():
                raise ConfigError(f"config file not found: {p}")

            data = _read_yaml(p)
            ext = data.get("extends")
            if not ext:
                i += 1
                continue

            if isinstance(ext, str):
                ext_list = [ext]
            elif isinstance(ext, list):
                ext_list = [str(x) for x in ext]
            else:
                raise ConfigError(f"invalid extends in {p}: {ext!r}")

            insert_paths = []
            for x in ext_list:
                pp = Path(x)
                insert_paths.append(pp if pp.is_absolute() else (p.parent / pp))

            inserted = False
            for pp in insert_paths[::-1]:
                if pp not in resolved:
                    resolved.insert(i, pp)
                    inserted = True
            # 挿入した親の extends も展開する
            if not inserted:
                i += 1

        return resolved


# -------------------------
# ConfigManager
# -------------------------
class ConfigManager:
    """
    設定ファイル・環境変数・CLI 上書きを合成して MergeConfig を作る。

    引数:
        config_path (Optional[str]): 設定ファイル（単一）
        config_paths (Optional[list[str]]): 設定ファイル（複数、後勝ち）
        environ (Optional[Mapping[str, str]]): 参照する環境変数。None なら .env を読み込んだ上で os.environ
        overrides (Optional[dict]): CLI などからの上書き（None の値は無視）
        logger: ロガー
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        logger=None,
        *,
        config_paths: Optional[List[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        # DI points
        resolver: Optional[ConfigSourceResolver] = None,
        loader: Optional[ConfigLoader] = None,
        auto_load: bool = True,
    ):
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)
        self.environ: Mapping[str, str] = environ
        self.logger = logger
        self.overrides: Dict[str, Any] = {k: v for k, v in (overrides or {}).items() if v is not None}

        self._resolver = resolver or DefaultConfigResolver()
        self._loader = loader or DefaultConfigLoader()

        self._config_files: List[Path] = self._resolver.resolve_files(
            config_path=config_path,
            config_paths=config_paths,
            environ=self.environ,
        )

        self.config: Dict[str, Any] = {}
        if auto_load:
            self.load_config()

    @property
    def config_files(self) -> List[Path]:
        return list(self._config_files)

    def load_config(self) -> None:
        if self.logger and self._config_files:
            self.logger.info("Loading configuration from: " + " -> ".join(str(p) for p in self._config_files))
        merged = self._loader.load(self._config_files, logger=self.logger)
        merged = _deep_merge(merged, self._environment_layer())
        merged = _deep_merge(merged, self.overrides)
        self.config.clear()
        self.config.update(merged)

    def _environment_layer(self) -> Dict[str, Any]:
        layer: Dict[str, Any] = {}
        for env_key, config_key in ENV_KEYS.items():
            value = self.environ.get(env_key)
            if value is not None and value != "":
                layer[config_key] = value
        return layer

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def build(self) -> MergeConfig:
        """
        合成済みの設定から MergeConfig を構築する。

        Raises:
            ConfigError: 必須項目（out / theme_name / hicolor）が無い場合
        """
        missing = [key for key in ("out", "theme_name", "hicolor") if not self.config.get(key)]
        if missing:
            raise ConfigError("missing required settings: " + ", ".join(missing))

        config = MergeConfig(
            out=Path(str(self.config["out"])),
            theme_name=str(self.config["theme_name"]),
            hicolor=Path(str(self.config["hicolor"])),
            icon_themes=parse_path_list(self.config.get("icon_themes")),
            remove_legacy_icons=parse_bool(self.config.get("remove_legacy_icons")),
            empty_dir=Path(str(self.config.get("empty_dir") or DEFAULT_EMPTY_DIR)),
        )
        if self.logger:
            self.logger.debug(f"Resolved merge config: {config}")
        return config


def build_merge_config(
    config_path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    logger=None,
) -> MergeConfig:
    """ConfigManager を作って MergeConfig を返すショートカット。"""
    return ConfigManager(config_path, logger, environ=environ, overrides=overrides).build()


def overrides_from_args(args: Any, keys: Sequence[str]) -> Dict[str, Any]:
    """argparse.Namespace から指定キーの値を取り出す（未指定 = None は除く）。"""
    out: Dict[str, Any] = {}
    for key in keys:
        value = getattr(args, key, None)
        if value is not None:
            out[key] = value
    return out
