"""Directory walking for directory-mode batches."""

import os
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

import structlog

from heic_converter.core.constants import DEFAULT_MAX_SCAN_DEPTH
from heic_converter.core.exceptions import DirectoryNotFoundError
from heic_converter.utils.logging import get_logger


class DirectoryScanner:
    """Collects candidate files below a root directory.

    Directories are identified by ``(st_dev, st_ino)`` and never entered
    twice, so symlink loops terminate. Recursion is also capped at
    ``max_depth`` levels below the root.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_SCAN_DEPTH,
        follow_symlinks: bool = True,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self.max_depth = max_depth
        self.follow_symlinks = follow_symlinks
        self.logger = logger or get_logger(__name__)

    def scan(self, root: Union[str, Path], recursive: bool = False) -> List[Path]:
        """Return the files below ``root``, sorted by path.

        Args:
            root: Directory to scan
            recursive: Descend into subdirectories when True

        Returns:
            File paths; directories themselves are never included

        Raises:
            DirectoryNotFoundError: If ``root`` is missing or not a directory
        """
        root_path = Path(root)
        if not root_path.exists():
            raise DirectoryNotFoundError(
                f"Input directory does not exist: {root_path}",
                details={"path": str(root_path), "reason": "missing"},
            )
        if not root_path.is_dir():
            raise DirectoryNotFoundError(
                f"Input path is not a directory: {root_path}",
                details={"path": str(root_path), "reason": "not_a_directory"},
            )

        files: List[Path] = []
        visited: Set[Tuple[int, int]] = set()
        self._walk(root_path, recursive, 0, visited, files)
        files.sort()

        self.logger.debug(
            f"Scanned {len(files)} files", root=str(root_path), recursive=recursive
        )
        return files

    def _walk(
        self,
        directory: Path,
        recursive: bool,
        depth: int,
        visited: Set[Tuple[int, int]],
        files: List[Path],
    ) -> None:
        try:
            stat = directory.stat()
        except OSError as e:
            self.logger.warning(f"Cannot stat directory: {e}", directory=str(directory))
            return

        key = (stat.st_dev, stat.st_ino)
        if key in visited:
            self.logger.debug("Skipping already visited directory", directory=str(directory))
            return
        visited.add(key)

        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            self.logger.warning(f"Cannot list directory: {e}", directory=str(directory))
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=self.follow_symlinks):
                    if recursive and depth < self.max_depth:
                        self._walk(Path(entry.path), recursive, depth + 1, visited, files)
                elif entry.is_file(follow_symlinks=self.follow_symlinks):
                    files.append(Path(entry.path))
            except OSError as e:
                self.logger.warning(f"Cannot inspect entry: {e}", path=entry.path)
