# icon_index.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple

from icon_theme_merger.constants.theme_constants import is_icon_file_name
from icon_theme_merger.theme_merge.theme_file import ThemeDescriptor


class IconIdentity(NamedTuple):
    """アイコンの同一性: (Context, 拡張子を除いたファイル名)"""

    context: str
    name: str

    def __str__(self) -> str:
        return f"{self.context}/{self.name}"


class CandidateIcon(NamedTuple):
    """あるテーマが提供するアイコンファイル 1 件"""

    theme_root: Path
    relative_path: Path

    @property
    def source_path(self) -> Path:
        return self.theme_root / self.relative_path


KnownIcons = Dict[IconIdentity, List[CandidateIcon]]


def collect_known_icons(theme: ThemeDescriptor) -> KnownIcons:
    """
    テーマの Directories に列挙され、実在するサブディレクトリからアイコンを収集する。

    同一テーマ内で同じ IconIdentity が複数見つかった場合もすべて保持する。

    Args:
        theme (ThemeDescriptor): root_path が設定済みのテーマ

    Returns:
        dict[IconIdentity, list[CandidateIcon]]: IconIdentity → 候補リスト
    """
    known: KnownIcons = {}
    root = theme.root_path

    for directory_name in theme.directories:
        dir_path = root / directory_name
        if not dir_path.is_dir():
            continue

        # 参照のみ。存在しないセクションを作らない
        section = theme.get_section(directory_name) or {}
        context = section.get("Context") or ""

        for name in sorted(os.listdir(dir_path)):
            if not is_icon_file_name(name):
                continue
            identity = IconIdentity(context, os.path.splitext(name)[0])
            candidate = CandidateIcon(root, Path(directory_name) / name)
            known.setdefault(identity, []).append(candidate)

    return known


def merge_known_icons(per_theme: Iterable[KnownIcons]) -> KnownIcons:
    """
    テーマごとの収集結果を優先度順（後ろほど優先）に連結する。
    同じ IconIdentity では後のテーマの候補が後ろに並ぶ。
    """
    merged: KnownIcons = {}
    for known in per_theme:
        for identity, candidates in known.items():
            merged.setdefault(identity, []).extend(candidates)
    return merged


def iter_candidates(known: KnownIcons) -> Iterable[CandidateIcon]:
    for candidates in known.values():
        yield from candidates
