# src/webapp2worker/utils/path_utils.py
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving important package and output paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_package_root() -> Path:
        """Returns the directory of the installed webapp2worker package."""
        return Path(__file__).resolve().parent.parent

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_package_root() / "settings.json"

    # --- Output paths ---

    @staticmethod
    def get_output_path(source: str, suffix: str, output_dir: Optional[Path] = None) -> Path:
        """
        Returns where the worker script for `source` is written.
        Local inputs default to a sibling file (index.html -> index.worker.js);
        URL inputs default to the current working directory.
        """
        if source.startswith(("http://", "https://")):
            name = source.rstrip("/").rsplit("/", 1)[-1] or "index.html"
            stem = name.split("?", 1)[0].rsplit(".", 1)[0] or "index"
            base_dir = output_dir or Path.cwd()
        else:
            path = Path(source)
            stem = path.stem
            base_dir = output_dir or path.resolve().parent

        return base_dir / f"{stem}{suffix}"
