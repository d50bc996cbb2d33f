"""Where template sources are read from."""

import abc
import logging
import os
import time
from pathlib import Path

from yeast.compiler.exceptions import YeastError

logger = logging.getLogger(__name__)


class SourceReadError(YeastError, OSError):
    """Raised when a template source can't be read."""

    pass


class TemplateSource(abc.ABC):
    """A template file in some template store."""

    store_name = "file"

    @abc.abstractmethod
    def last_modified(self) -> float:
        """Modification time of the source, in seconds since the epoch."""

    @abc.abstractmethod
    def read_bytes(self) -> bytes:
        """Return the raw template content.

        Raises:
            SourceReadError: if the source can't be read.
        """


class FileSource(TemplateSource):
    """A template on the local file system."""

    store_name = "file"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def last_modified(self) -> float:
        try:
            return os.stat(self.path).st_mtime
        except OSError:
            # A missing source always looks newer so the next read reports it
            return time.time()

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise SourceReadError(f"Can't read template {self.path}: {e}") from e

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"
