"""Pure helpers for slash-separated site paths.

Every site addresses its files with absolute, ``/``-separated paths that
carry no trailing slash (except the root ``/`` itself). These helpers keep
that representation canonical and are shared by URLs, files and sites.
"""

from __future__ import annotations


def normalize_path(path: str | None) -> str:
    """Return the canonical form of *path*.

    Backslashes become slashes, duplicate slashes collapse, ``.`` segments
    are dropped and ``..`` segments consume their parent. The result always
    starts with ``/`` and never ends with one, except for the root.

    Examples:
        ```python
        normalize_path("a//b/")         # '/a/b'
        normalize_path("/a/./b/../c")   # '/a/c'
        normalize_path("")              # '/'
        ```
    """
    if not path:
        return "/"
    segments: list[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    return "/" + "/".join(segments)


def path_parent(path: str) -> str | None:
    """Return the parent of *path*, or ``None`` for the root."""
    path = normalize_path(path)
    if path == "/":
        return None
    parent = path.rsplit("/", 1)[0]
    return parent or "/"


def path_name(path: str) -> str:
    """Return the last segment of *path* (empty for the root)."""
    return normalize_path(path).rsplit("/", 1)[-1]


def path_extension(path: str) -> str:
    """Return the lower-cased extension of *path* without the dot."""
    name = path_name(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def path_simple_name(path: str) -> str:
    """Return the last segment of *path* without its extension."""
    name = path_name(path)
    if "." not in name or name.startswith(".") and name.count(".") == 1:
        return name
    return name.rsplit(".", 1)[0]


def path_child(parent: str, name: str) -> str:
    """Join *name* below *parent* and normalize the result."""
    return normalize_path(f"{parent.rstrip('/')}/{name}")
