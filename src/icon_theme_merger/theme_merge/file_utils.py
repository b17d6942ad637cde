import os
import shutil
from pathlib import Path
from typing import Optional

from icon_theme_merger.theme_merge.exceptions import DanglingIconSourceError


def ensure_directory(path: Path, root: Optional[Path] = None) -> None:
    """
    ディレクトリを作成する（既存なら何もしない）。
    前回実行で legacy 無効化のシンボリックリンクになっている場合は実ディレクトリに戻す。

    Args:
        path (Path): 作成するディレクトリ
        root (Path, optional): 指定した場合、root より下の途中のパス要素もすべて検査し、
            シンボリックリンクなら削除してから作成する（リンク先に書き込まない）
    """
    path = Path(path)
    if root is not None:
        current = Path(root)
        for part in path.relative_to(root).parts:
            current = current / part
            if current.is_symlink():
                current.unlink()
    elif path.is_symlink():
        path.unlink()
    path.mkdir(parents=True, exist_ok=True)


def force_symlink(target, link_path: Path) -> None:
    """link_path に target へのシンボリックリンクを作る。既存のファイル／リンクは置き換える。"""
    link_path = Path(link_path)
    if link_path.is_symlink() or link_path.is_file():
        link_path.unlink()
    os.symlink(str(target), str(link_path))


def link_icon(source_path: Path, link_path: Path) -> Path:
    """
    アイコンの実体パスを解決し、link_path にシンボリックリンクを作成する。

    Args:
        source_path (Path): テーマ内のアイコンパス（リンクでもよい）
        link_path (Path): マージ先に作成するリンクのパス

    Returns:
        Path: リンク先として使った実体パス

    Raises:
        DanglingIconSourceError: 実体パスが解決できない場合
    """
    try:
        real_path = os.path.realpath(source_path, strict=True)
    except (OSError, RuntimeError) as e:
        raise DanglingIconSourceError(source_path) from e

    force_symlink(real_path, link_path)
    return Path(real_path)


def replace_with_symlink(path: Path, target: Path) -> None:
    """path（ディレクトリ・ファイル・リンク）を削除し、target へのシンボリックリンクに置き換える。"""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
    os.symlink(str(target), str(path))
