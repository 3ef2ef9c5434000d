"""Extension-based selection of scanned files."""

from pathlib import Path
from typing import Iterable, List, Union

from heic_converter.core.formats import normalize_extension


class FormatFilter:
    """Keeps paths whose extension is in an allowed set.

    Matching is case-insensitive unless ``case_sensitive`` is set, in which
    case ``IMG.HEIC`` does not match ``heic``. Input order is preserved.
    """

    def __init__(self, case_sensitive: bool = False):
        self.case_sensitive = case_sensitive

    def _key(self, extension: str) -> str:
        extension = extension.strip().lstrip(".")
        return extension if self.case_sensitive else normalize_extension(extension)

    def matches(self, path: Union[str, Path], allowed: Iterable[str]) -> bool:
        return bool(self.filter([path], allowed))

    def filter(
        self, paths: Iterable[Union[str, Path]], allowed_extensions: Iterable[str]
    ) -> List[Path]:
        """Return the paths whose extension is allowed, in input order."""
        allowed = {self._key(ext) for ext in allowed_extensions}
        selected = []
        for path in paths:
            suffix = Path(path).suffix
            if suffix and self._key(suffix) in allowed:
                selected.append(Path(path))
        return selected
