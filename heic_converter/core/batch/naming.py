"""Collision-free output naming."""

import os
import threading
from pathlib import Path
from typing import Union

from heic_converter.core.constants import COLLISION_SUFFIX_SEPARATOR
from heic_converter.core.formats import normalize_extension


class OutputPathResolver:
    """Picks an output path that does not exist yet and reserves it.

    ``photo.heic`` -> ``photo.jpg``, then ``photo_1.jpg``, ``photo_2.jpg``...
    With ``reserve`` enabled the chosen name is claimed by exclusively
    creating an empty placeholder, so two resolvers (threads or processes)
    can never hand out the same path. The converter later overwrites the
    placeholder; ``release`` removes it if the conversion failed.
    """

    def __init__(self, reserve: bool = True):
        self.reserve = reserve
        self._lock = threading.Lock()

    @staticmethod
    def candidate(stem: str, target_format: str, counter: int) -> str:
        if counter == 0:
            return f"{stem}.{target_format}"
        return f"{stem}{COLLISION_SUFFIX_SEPARATOR}{counter}.{target_format}"

    def resolve(
        self,
        input_path: Union[str, Path],
        target_format: str,
        output_dir: Union[str, Path],
    ) -> Path:
        """Return a free path for ``input_path`` converted to ``target_format``.

        Args:
            input_path: Source file; only its stem is used
            target_format: Output extension, with or without a dot
            output_dir: Directory the output goes to

        Returns:
            A path that did not exist when it was chosen (and, when reserving,
            now exists as an empty placeholder)

        Raises:
            OSError: If the placeholder cannot be created for a reason other
                than the name being taken
        """
        stem = Path(input_path).stem
        fmt = normalize_extension(target_format)
        directory = Path(output_dir)

        with self._lock:
            counter = 0
            while True:
                path = directory / self.candidate(stem, fmt, counter)
                if self._claim(path):
                    return path
                counter += 1

    def _claim(self, path: Path) -> bool:
        if not self.reserve:
            return not os.path.lexists(path)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        os.close(fd)
        return True

    def release(self, path: Union[str, Path]) -> bool:
        """Remove a reserved placeholder that was never written to.

        Returns:
            True if a placeholder was removed
        """
        if not self.reserve:
            return False
        path = Path(path)
        try:
            if path.is_file() and path.stat().st_size == 0:
                path.unlink()
                return True
        except FileNotFoundError:
            pass
        return False

    def discard(self, path: Union[str, Path]) -> bool:
        """Remove whatever was written to a reserved path.

        Used for outputs of conversions that were given up on; unlike
        ``release`` this also removes a partly or fully written file.

        Returns:
            True if a file was removed
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        return True
