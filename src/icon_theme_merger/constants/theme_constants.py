# theme_constants.py

# index.theme のメインセクション名
ICON_THEME_SECTION = "Icon Theme"

# テーマルート直下のメタデータファイル名
INDEX_FILE_NAME = "index.theme"

# アイコンとして扱う拡張子（大文字小文字は区別する）
ICON_EXTENSIONS = (".png", ".svg")

# マージ後テーマの固定メタデータ
MERGED_THEME_NAME = "Merged icons"
MERGED_THEME_EXAMPLE = "folder"
MERGED_THEME_COMMENT_PREFIX = "Merged icons from: "

# hicolor テーマの prefix からの相対位置
HICOLOR_THEME_SUBPATH = ("share", "icons", "hicolor")

# 出力テーマの prefix からの相対位置（この下に <themeName> が作られる）
OUTPUT_ICONS_SUBPATH = ("share", "icons")

# legacy アイコン無効化
LEGACY_DIR_NAME = "legacy"
DEFAULT_EMPTY_DIR = "/var/empty"

# 終了ステータス
EXIT_FAILURE = 1
EXIT_MISSING_THEME_INDEX = 2


def is_icon_file_name(name: str) -> bool:
    """
    ファイル名がアイコンファイル（.png / .svg）かどうかを判定する。

    Args:
        name (str): ディレクトリエントリ名

    Returns:
        bool: 対象拡張子で終わっていれば True
    """
    return name.endswith(ICON_EXTENSIONS)
