# exceptions.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from icon_theme_merger.constants.theme_constants import EXIT_FAILURE, EXIT_MISSING_THEME_INDEX


class ThemeMergeError(Exception):
    """ベースとなる例外クラス"""

    exit_code = EXIT_FAILURE


class MissingThemeIndexError(ThemeMergeError):
    """指定されたテーマルートに index.theme が存在しないときに発生（全件まとめて報告）"""

    exit_code = EXIT_MISSING_THEME_INDEX

    def __init__(self, paths: Iterable[Path]):
        self.paths = [Path(p) for p in paths]
        listed = "\n".join(f"  - {p}" for p in self.paths)
        super().__init__(f"The following theme paths are invalid (missing index.theme)\n{listed}")


class MalformedThemeFileError(ThemeMergeError):
    """index.theme の内容を解釈できないときに発生"""

    def __init__(
        self,
        reason: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
        path: Optional[Path] = None,
    ):
        self.reason = reason
        self.line_number = line_number
        self.line = line
        self.path = Path(path) if path is not None else None
        super().__init__(self._format())

    def _format(self) -> str:
        where = str(self.path) if self.path is not None else "<text>"
        if self.line_number is not None:
            where = f"{where}:{self.line_number}"
        msg = f"{where}: {self.reason}"
        if self.line is not None:
            msg += f" ({self.line!r})"
        return msg

    def with_path(self, path: Path) -> "MalformedThemeFileError":
        """同じ内容でファイルパスだけを付け加えた例外を返す。"""
        return MalformedThemeFileError(self.reason, self.line_number, self.line, path)


class DanglingIconSourceError(ThemeMergeError):
    """アイコンのリンク元が解決できない（壊れたシンボリックリンク等）ときに発生"""

    def __init__(self, source_path: Path):
        self.source_path = Path(source_path)
        super().__init__(f"Dangling icon source: {self.source_path}")


class ConfigError(ThemeMergeError):
    """実行設定が不足・不正なときに発生"""

    def __init__(self, message: str):
        super().__init__(f"Invalid configuration: {message}")


class CommandLineError(ThemeMergeError):
    """コマンドライン引数が不正なときに発生（argparse の終了ステータス 2 を使わない）"""

    def __init__(self, message: str):
        super().__init__(f"Invalid arguments: {message}")
