import logging
from pathlib import Path

import pytest

from icon_theme_merger.core.config.config_manager import MergeConfig


def _index_text(name, directories, scaled_directories, contexts, hidden):
    lines = ["[Icon Theme]", f"Name={name}", f"Directories={','.join(directories)}"]
    if scaled_directories:
        lines.append(f"ScaledDirectories={','.join(scaled_directories)}")
    if hidden:
        lines.append("Hidden=true")
    lines.append("")
    for directory in directories:
        lines.append(f"[{directory}]")
        context = contexts.get(directory)
        if context is not None:
            lines.append(f"Context={context}")
        lines.append("Type=Fixed")
        lines.append("")
    return "\n".join(lines)


# === fixtures ===
@pytest.fixture
def theme_factory():
    """index.theme とアイコンファイルを持つテーマディレクトリを作成するファクトリ"""

    def _make(
        root: Path,
        name: str,
        directories=(),
        contexts=None,
        icons=None,
        scaled_directories=(),
        hidden=False,
    ) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        contexts = contexts or {}
        (root / "index.theme").write_text(
            _index_text(name, list(directories), list(scaled_directories), contexts, hidden),
            encoding="utf-8",
        )
        for directory, file_names in (icons or {}).items():
            (root / directory).mkdir(parents=True, exist_ok=True)
            for file_name in file_names:
                (root / directory / file_name).write_text(f"{name}:{directory}/{file_name}")
        return root

    return _make


@pytest.fixture
def hicolor_prefix(tmp_path, theme_factory):
    prefix = tmp_path / "hicolor-prefix"
    theme_factory(
        prefix / "share" / "icons" / "hicolor",
        "Hicolor",
        directories=["48x48/apps"],
        contexts={"48x48/apps": "Applications"},
        icons={"48x48/apps": ["hicolor-app.png"]},
    )
    return prefix


@pytest.fixture
def make_config(tmp_path, hicolor_prefix):
    def _make(icon_themes=(), **kwargs) -> MergeConfig:
        return MergeConfig(
            out=tmp_path / "out",
            theme_name="merged",
            hicolor=hicolor_prefix,
            icon_themes=[Path(p) for p in icon_themes],
            **kwargs,
        )

    return _make


@pytest.fixture
def merge_logger():
    logger = logging.getLogger("test_icon_merge")
    logger.setLevel(logging.DEBUG)
    return logger
