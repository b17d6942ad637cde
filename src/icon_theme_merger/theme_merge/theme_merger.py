from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from icon_theme_merger.constants.theme_constants import (
    ICON_THEME_SECTION,
    INDEX_FILE_NAME,
    LEGACY_DIR_NAME,
    MERGED_THEME_COMMENT_PREFIX,
    MERGED_THEME_EXAMPLE,
    MERGED_THEME_NAME,
)
from icon_theme_merger.core.config.config_manager import MergeConfig
from icon_theme_merger.core.logging import AppLogger
from icon_theme_merger.theme_merge.exceptions import DanglingIconSourceError, MissingThemeIndexError
from icon_theme_merger.theme_merge.file_utils import ensure_directory, link_icon, replace_with_symlink
from icon_theme_merger.theme_merge.icon_index import (
    CandidateIcon,
    KnownIcons,
    collect_known_icons,
    iter_candidates,
    merge_known_icons,
)
from icon_theme_merger.theme_merge.theme_file import ThemeDescriptor


def dedupe(items: Iterable[str]) -> List[str]:
    """先に出現したものを残して重複を除く。"""
    return list(dict.fromkeys(items))


@dataclass
class MaterializeReport:
    linked: List[CandidateIcon] = field(default_factory=list)
    skipped: List[CandidateIcon] = field(default_factory=list)


@dataclass
class MergeResult:
    theme_path: Path
    themes: List[ThemeDescriptor]
    descriptor: ThemeDescriptor
    report: MaterializeReport
    legacy_paths: List[Path] = field(default_factory=list)


class ThemeMerger:
    """
    複数のアイコンテーマを 1 つのテーマ（シンボリックリンクの集合 + index.theme）に統合する。

    テーマは優先度の昇順（後ろほど優先）で扱い、先頭は常に hicolor。
    環境変数などのグローバル状態は参照せず、MergeConfig だけを入力とする。
    """

    def __init__(self, config: MergeConfig, logger=None):
        self.config = config
        self.logger = logger or AppLogger(logger_name="ThemeMerger").get_logger()
        self.themes: List[ThemeDescriptor] = []
        self._known_icons: Dict[int, KnownIcons] = {}

    # ------------------------
    # メインAPI（使用順）
    # ------------------------

    def run(self) -> MergeResult:
        """
        検証 → 読み込み → リンク作成 → index.theme 出力 → legacy 無効化 を一括で行う。

        Returns:
            MergeResult: 出力先・読み込んだテーマ・統合メタデータ・リンク結果

        Raises:
            MissingThemeIndexError: 明示指定されたテーマに index.theme が無い場合（書き込み前に送出）
            MalformedThemeFileError: index.theme が解釈できない場合（書き込み前に送出）
        """
        self.validate()
        themes = self.load_themes()

        known = self.collect_icons(themes)
        report = self.materialize(themes, known)

        descriptor = self.build_merged_descriptor(themes)
        self.write_index(descriptor)

        legacy_paths: List[Path] = []
        if self.config.remove_legacy_icons:
            legacy_paths = self.remove_legacy_icons()

        return MergeResult(
            theme_path=self.config.theme_path,
            themes=themes,
            descriptor=descriptor,
            report=report,
            legacy_paths=legacy_paths,
        )

    def validate(self) -> None:
        """
        明示指定されたテーマルートすべてに index.theme があるか検証する。
        hicolor は必ず存在する前提のため対象外。欠けているものはまとめて報告する。
        """
        missing = [
            root / INDEX_FILE_NAME
            for root in self.config.icon_themes
            if not (root / INDEX_FILE_NAME).exists()
        ]
        if missing:
            for path in missing:
                self.logger.error(f"Missing index.theme: {path}")
            raise MissingThemeIndexError(missing)

    def load_themes(self) -> List[ThemeDescriptor]:
        """hicolor を先頭に、全テーマの index.theme を優先度順に読み込む。"""
        themes = []
        for root in self.config.theme_roots:
            index_path = root / INDEX_FILE_NAME
            self.logger.debug(f"Loading theme index from {index_path}")
            themes.append(ThemeDescriptor.read(index_path))
        self.themes = themes
        self._known_icons.clear()
        self.logger.info(
            "Loaded themes: " + " -> ".join(theme.name or str(theme.root_path) for theme in themes)
        )
        return themes

    def known_icons(self, theme: ThemeDescriptor) -> KnownIcons:
        """テーマ単位の収集結果（キャッシュ付き）"""
        key = id(theme)
        if key not in self._known_icons:
            self._known_icons[key] = collect_known_icons(theme)
        return self._known_icons[key]

    def collect_icons(self, themes: List[ThemeDescriptor]) -> KnownIcons:
        known = merge_known_icons(self.known_icons(theme) for theme in themes)
        self.logger.info(f"Collected {len(known)} icon identities")
        return known

    # ------------------------
    # 出力系
    # ------------------------

    def materialize(self, themes: List[ThemeDescriptor], known: KnownIcons) -> MaterializeReport:
        """
        統合テーマのディレクトリを作成し、全候補のアイコンをシンボリックリンクする。

        同じ相対パスに複数テーマの候補がある場合、後から作られたリンク（= 優先度の高いテーマ）が残る。
        リンク元が解決できない候補は警告を出してスキップする。

        Args:
            themes (list[ThemeDescriptor]): 優先度順のテーマ
            known (dict): merge_known_icons() の結果

        Returns:
            MaterializeReport: リンクした候補とスキップした候補
        """
        theme_path = self.config.theme_path
        ensure_directory(theme_path)

        for theme in themes:
            for directory_name in theme.directories:
                ensure_directory(theme_path / directory_name, root=theme_path)

        report = MaterializeReport()
        for candidate in iter_candidates(known):
            link_path = theme_path / candidate.relative_path
            try:
                real_path = link_icon(candidate.source_path, link_path)
            except DanglingIconSourceError as e:
                self.logger.warning(f"(Skipping dangling symlink {e.source_path})")
                report.skipped.append(candidate)
                continue
            self.logger.debug(f"Linked {link_path} -> {real_path}")
            report.linked.append(candidate)

        self.logger.info(
            f"Linked {len(report.linked)} icons into {theme_path} (skipped {len(report.skipped)})"
        )
        return report

    def build_merged_descriptor(self, themes: List[ThemeDescriptor]) -> ThemeDescriptor:
        """
        統合テーマの index.theme を構築する。

        - Directories / ScaledDirectories: 各テーマのリストを蓄積結果の前に連結して重複除去
          （最後に処理したテーマの並び順が先頭に来る）
        - "Icon Theme" 以外のセクション: 同名セクションは後のテーマで丸ごと置き換え
        """
        merged = ThemeDescriptor(root_path=self.config.theme_path)
        merged.name = MERGED_THEME_NAME
        merged.example = MERGED_THEME_EXAMPLE
        merged.comment = MERGED_THEME_COMMENT_PREFIX + ", ".join(
            theme.name or "" for theme in reversed(themes)
        )

        for theme in themes:
            merged.directories = dedupe(theme.directories + merged.directories)
            merged.scaled_directories = dedupe(theme.scaled_directories + merged.scaled_directories)

            for section_name, values in theme.sections.items():
                if section_name == ICON_THEME_SECTION:
                    continue
                merged.sections[section_name] = dict(values)

        return merged

    def write_index(self, descriptor: ThemeDescriptor) -> Path:
        index_path = self.config.theme_path / INDEX_FILE_NAME
        descriptor.write(index_path)
        self.logger.info(f"Merged index.theme written to: {index_path}")
        return index_path

    def remove_legacy_icons(self) -> List[Path]:
        """
        統合テーマ配下の "legacy" をすべて削除し、空ディレクトリ（既定 /var/empty）へのリンクに置き換える。
        シンボリックリンクはたどらない。
        """
        replaced: List[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.config.theme_path):
            if LEGACY_DIR_NAME in dirnames:
                dirnames.remove(LEGACY_DIR_NAME)
                replaced.append(Path(dirpath) / LEGACY_DIR_NAME)
            elif LEGACY_DIR_NAME in filenames:
                replaced.append(Path(dirpath) / LEGACY_DIR_NAME)

        for path in replaced:
            self.logger.info(f"Replacing legacy icons {path} -> {self.config.empty_dir}")
            replace_with_symlink(path, self.config.empty_dir)
        return replaced

