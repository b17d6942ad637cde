"""
theme_merge.theme_file

index.theme（ini 風フォーマット）の読み書きと、テーマメタデータのモデル。

- セクション・キーは出現順を保持する（出力を安定させるため）
- "#" 以降は値の途中でもコメントとして捨てる
- パーサは例外を投げずに ParseResult を返す。中断するかどうかは呼び出し側が決める
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from icon_theme_merger.constants.theme_constants import ICON_THEME_SECTION
from icon_theme_merger.theme_merge.exceptions import MalformedThemeFileError

_SECTION_RE = re.compile(r"^\[(.+)\]$")

Section = Dict[str, str]

# -------------------------
# Field schema ("Icon Theme" section)
# -------------------------
STRING_FIELDS = {
    "name": "Name",
    "comment": "Comment",
    "example": "Example",
}

LIST_FIELDS = {
    "directories": "Directories",
    "scaled_directories": "ScaledDirectories",
    "inherits": "Inherits",
}

BOOL_FIELDS = {
    "hidden": "Hidden",
}


def _string_field(key: str) -> property:
    def getter(self: "ThemeDescriptor") -> Optional[str]:
        return self.get_value(ICON_THEME_SECTION, key)

    def setter(self: "ThemeDescriptor", value) -> None:
        self.section(ICON_THEME_SECTION)[key] = str(value)

    return property(getter, setter, doc=f"`{key}` の文字列値（未設定なら None）")


def _list_field(key: str) -> property:
    def getter(self: "ThemeDescriptor") -> List[str]:
        raw = self.get_value(ICON_THEME_SECTION, key)
        if not raw:
            return []
        return [item for item in raw.split(",") if item]

    def setter(self: "ThemeDescriptor", value) -> None:
        self.section(ICON_THEME_SECTION)[key] = ",".join(value)

    return property(getter, setter, doc=f"`{key}` のカンマ区切りリスト（未設定なら空）")


def _bool_field(key: str) -> property:
    def getter(self: "ThemeDescriptor") -> bool:
        raw = self.get_value(ICON_THEME_SECTION, key) or "false"
        return raw.lower() == "true"

    def setter(self: "ThemeDescriptor", value) -> None:
        self.section(ICON_THEME_SECTION)[key] = "true" if value else "false"

    return property(getter, setter, doc=f"`{key}` の真偽値（\"true\" 以外は False）")


class ThemeDescriptor:
    """
    1 テーマ分の index.theme を表すモデル。

    属性:
        sections (dict[str, dict[str, str]]): セクション名 → (キー → 値)
        root_path (Optional[Path]): index.theme を含むテーマルート
    """

    def __init__(self, root_path: Optional[Path] = None):
        self.sections: Dict[str, Section] = {}
        self.root_path = Path(root_path) if root_path is not None else None

    def __repr__(self) -> str:
        return f"ThemeDescriptor(name={self.name!r}, root_path={self.root_path!r})"

    # ------------------------
    # section access
    # ------------------------

    def section(self, name: str) -> Section:
        """
        セクションを返す。存在しなければ空のセクションを作成して返す（get-or-insert）。
        """
        if name not in self.sections:
            self.sections[name] = {}
        return self.sections[name]

    def get_section(self, name: str) -> Optional[Section]:
        """セクションを返す。存在しなくても作成しない。"""
        return self.sections.get(name)

    def get_value(self, section_name: str, key: str) -> Optional[str]:
        section = self.sections.get(section_name)
        if section is None:
            return None
        return section.get(key)

    # ------------------------
    # I/O
    # ------------------------

    @classmethod
    def read(cls, index_path: Path) -> "ThemeDescriptor":
        """
        index.theme を読み込んでモデルを構築する。

        Args:
            index_path (Path): index.theme のパス

        Returns:
            ThemeDescriptor: root_path に index.theme の親ディレクトリを設定したモデル

        Raises:
            FileNotFoundError: ファイルが存在しない場合
            MalformedThemeFileError: 内容を解釈できない場合
        """
        index_path = Path(index_path)
        text = index_path.read_text(encoding="utf-8")
        result = parse_theme_text(text, root_path=index_path.parent)
        if not result.ok:
            raise result.error.with_path(index_path)
        return result.descriptor

    def write(self, index_path: Path) -> None:
        Path(index_path).write_text(self.serialize(), encoding="utf-8")

    def serialize(self) -> str:
        """
        セクション順・キー順をそのまま保って ini 風テキストに変換する。
        各セクションの後ろには空行を 1 行入れる（最後のセクションも同様）。
        エスケープは行わない。
        """
        lines: List[str] = []
        for section_name, values in self.sections.items():
            lines.append(f"[{section_name}]")
            for key, value in values.items():
                lines.append(f"{key}={value}")
            lines.append("")
        return "".join(line + "\n" for line in lines)


def _install_fields(cls: type) -> None:
    """スキーマ表から "Icon Theme" セクションの型付きアクセサを生成する（クラス定義時に 1 回だけ）。"""
    for factory, fields in (
        (_string_field, STRING_FIELDS),
        (_list_field, LIST_FIELDS),
        (_bool_field, BOOL_FIELDS),
    ):
        for attr, key in fields.items():
            setattr(cls, attr, factory(key))


_install_fields(ThemeDescriptor)


@dataclass(frozen=True)
class ParseResult:
    """parse_theme_text() の結果。成功時は descriptor、失敗時は error が入る。"""

    descriptor: Optional[ThemeDescriptor] = None
    error: Optional[MalformedThemeFileError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ThemeDescriptor:
        if self.error is not None:
            raise self.error
        return self.descriptor


def _strip_comment(line: str) -> str:
    return line.split("#", 1)[0].strip()


def parse_theme_text(text: str, root_path: Optional[Path] = None) -> ParseResult:
    """
    index.theme のテキストを解析する。

    - "#" 以降を削除し、前後の空白を除去、空行は捨てる
    - "[name]" はセクション開始（既存なら再オープン）
    - それ以外は最初の "=" でキーと値に分割して現在のセクションへ格納（後勝ち）
    - セクション開始前の代入、"=" を含まない行はエラー

    Args:
        text (str): index.theme の内容
        root_path (Path, optional): 生成するモデルに設定するテーマルート

    Returns:
        ParseResult: 解析結果
    """
    descriptor = ThemeDescriptor(root_path=root_path)
    current: Optional[Section] = None

    # 行区切りは "\n" のみ（\x0c などは値の一部として残す）
    for line_number, raw_line in enumerate(text.split("\n"), start=1):
        line = _strip_comment(raw_line)
        if not line:
            continue

        match = _SECTION_RE.match(line)
        if match:
            current = descriptor.section(match.group(1))
            continue

        if current is None:
            return ParseResult(
                error=MalformedThemeFileError("assignment without a category", line_number, line)
            )
        if "=" not in line:
            return ParseResult(
                error=MalformedThemeFileError("expected a key=value assignment", line_number, line)
            )

        key, value = line.split("=", 1)
        current[key.strip()] = value.strip()

    return ParseResult(descriptor=descriptor)
