from icon_theme_merger.core.logging.app_logger import AppLogger, Logger

__all__ = ["AppLogger", "Logger"]
