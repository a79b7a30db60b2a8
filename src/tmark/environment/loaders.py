"""Template loaders for the tmark environment.

Loaders provide template source to the Environment. They implement
`get_source(name)` returning `(source, filename)` and `resolve(name, parent)`
mapping a ``t-include`` reference to a loader name.

Built-in Loaders:
- `FileSystemLoader`: Load from the filesystem, optionally under a root
- `DictLoader`: Load from an in-memory dictionary (testing/embedded)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def resolve(self, name: str, parent: str | None) -> str:
            return name

        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row.source, f"db://{name}"
    ```

Thread-Safety:
`get_source()` is called from worker threads (``asyncio.to_thread``) during
async renders. Both built-in loaders are safe: FileSystemLoader reads files
atomically and DictLoader only reads its mapping.

"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import Protocol, runtime_checkable

from tmark.environment.exceptions import TemplateLoadError, TemplateNotFoundError


@runtime_checkable
class Loader(Protocol):
    """Source provider for top-level templates and includes."""

    def resolve(self, name: str, parent: str | None) -> str:
        """Map name, referenced from the template parent, to a loader name."""
        ...

    def get_source(self, name: str) -> tuple[str, str | None]:
        """Return ``(source, filename)`` for a resolved name."""
        ...


class FileSystemLoader:
    """Load templates from the filesystem.

    Without a root, names are paths (absolute or relative to the working
    directory). With a root, relative names are looked up beneath it.
    Filenames are reported as absolute paths, and includes resolve against
    the directory of the including file.

    Example:
            >>> loader = FileSystemLoader("templates/")
            >>> source, filename = loader.get_source("pages/about.html")
            >>> loader.resolve("partials/nav.html", filename)
            '/srv/site/templates/pages/partials/nav.html'

    Raises:
        TemplateNotFoundError: If the file does not exist
        TemplateLoadError: If the file exists but cannot be read or decoded

    """

    __slots__ = ("_encoding", "_root")

    def __init__(self, root: str | Path | None = None, encoding: str = "utf-8"):
        self._root = Path(root) if root is not None else None
        self._encoding = encoding

    @property
    def root(self) -> Path | None:
        return self._root

    def resolve(self, name: str, parent: str | None) -> str:
        if parent is None or os.path.isabs(name):
            return name
        return os.path.normpath(os.path.join(os.path.dirname(parent), name))

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the filesystem."""
        path = Path(name)
        if self._root is not None and not path.is_absolute():
            path = self._root / path
        if not path.is_file():
            where = f" in: {self._root}" if self._root is not None else ""
            raise TemplateNotFoundError(f"Template '{name}' not found{where}")
        try:
            source = path.read_text(self._encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateLoadError(f"Template '{name}' could not be read: {e}") from e
        return source, str(path.resolve())


class DictLoader:
    """Load templates from an in-memory dictionary.

    Maps template names to source strings. Names are treated as POSIX paths,
    so includes resolve relative to the including template's "directory".

    Example:
            >>> loader = DictLoader({
            ...     "pages/index.html": '<t-include file="../partials/nav.html"></t-include>',
            ...     "partials/nav.html": "<nav>{{ title }}</nav>",
            ... })
            >>> loader.resolve("../partials/nav.html", "pages/index.html")
            'partials/nav.html'

    Raises:
        TemplateNotFoundError: If template name not in mapping

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def resolve(self, name: str, parent: str | None) -> str:
        if parent is None or name.startswith("/"):
            return name.lstrip("/")
        return posixpath.normpath(posixpath.join(posixpath.dirname(parent), name))

    def get_source(self, name: str) -> tuple[str, str]:
        if name not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[name], name

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())
