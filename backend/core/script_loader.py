"""
SQL Test Script Loader

Resolves script identifiers coming from the UI to script text. Identifiers are
treated as bare file names inside the scripts directory.
"""

import logging
from pathlib import Path
from typing import List, Optional

from backend.core.errors import ScriptNotFound

logger = logging.getLogger(__name__)

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "sql_tests"


def safe_script_name(name: str) -> str:
    """
    Reduce an untrusted identifier to its final path component.

    Both separators are honored so `..\\x.sql` is handled on POSIX hosts too.
    """
    return str(name or "").replace("\\", "/").rstrip("/").split("/")[-1].strip()


class ScriptLoader:
    """
    Loads SQL test scripts by file name.

    Scripts are stored in backend/sql_tests/.
    """

    def __init__(self, scripts_dir: Optional[Path] = None):
        self.scripts_dir = Path(scripts_dir or SCRIPTS_DIR).resolve()

    def list_scripts(self) -> List[str]:
        """
        List available scripts.

        Returns:
            Sorted list of `*.sql` file names
        """
        if not self.scripts_dir.is_dir():
            return []
        return sorted(p.name for p in self.scripts_dir.glob("*.sql") if p.is_file())

    def resolve(self, name: str) -> str:
        """
        Load a script by name.

        Args:
            name: Script file name; any directory part is discarded

        Returns:
            Full script text

        Raises:
            ScriptNotFound: the name is empty or no such file exists
        """
        safe_name = safe_script_name(name)
        if safe_name in ("", ".", "..") or "\x00" in safe_name:
            raise ScriptNotFound(str(name))

        script_path = self.scripts_dir / safe_name
        # Symlinks pointing outside the directory are not followed.
        if script_path.resolve().parent != self.scripts_dir or not script_path.is_file():
            logger.error(f"Script not found: {script_path}")
            raise ScriptNotFound(safe_name)

        return script_path.read_text(encoding="utf-8")
