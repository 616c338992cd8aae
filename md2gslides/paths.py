#!/usr/bin/env python3
"""Utility helpers for resolving asset locations and scratch directories.

Markdown image references are turned into URLs here: remote URLs pass
through untouched, anything else is a path relative to the markdown file and
becomes a ``file://`` URI.  Generated images (rendered math) are written to a
scratch directory obtained from :func:`prepare_workspace`.

The scratch directory is deleted automatically via an ``atexit`` hook unless
``keep_tmp`` is True *and* it lives inside the given output directory.
"""
from __future__ import annotations

import atexit
import errno
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname


__all__ = [
    "prepare_workspace",
    "resolve_asset",
    "file_uri_to_path",
    "is_local_url",
    "atomic_output",
]

_URL_SCHEME_RE = re.compile(r"^(file|https?):", re.IGNORECASE)


def prepare_workspace(output_dir: Optional[str | Path] = None, *, keep_tmp: bool = False) -> Dict[str, Path]:
    """Resolve the output directory, create a working tmp dir and register cleanup.

    Parameters
    ----------
    output_dir
        Directory that may hold the scratch directory.  When ``None`` a
        system temporary directory is used.
    keep_tmp
        If ``True`` and the temporary directory is *inside* ``output_dir`` it
        will **not** be deleted at process exit.

    Returns
    -------
    dict with keys:
        ``output_dir`` – absolute :class:`pathlib.Path` (or ``None``)
        ``tmp_dir``    – absolute :class:`pathlib.Path` where generated
                          images should be placed
    """
    out_path = None
    use_fallback = output_dir is None

    if not use_fallback:
        out_path = Path(output_dir).expanduser().resolve()
        proposed_tmp = out_path / ".md2gslides_tmp"
        try:
            proposed_tmp.mkdir(parents=True, exist_ok=True)
        except OSError as exc:  # permission denied, read-only FS, …
            if exc.errno not in (errno.EACCES, errno.EROFS):
                raise
            use_fallback = True

    if use_fallback:
        tmp_path = Path(tempfile.mkdtemp(prefix="md2gslides_"))
    else:
        tmp_path = proposed_tmp

    should_cleanup = not keep_tmp or use_fallback

    def _cleanup() -> None:
        if should_cleanup and tmp_path.exists():
            shutil.rmtree(tmp_path, ignore_errors=True)

    atexit.register(_cleanup)

    return {
        "output_dir": out_path,
        "tmp_dir": tmp_path,
    }


def resolve_asset(src: str, *, base_dir: Path) -> str:
    """Return the URL for an image reference found in markdown.

    Rules
    -----
    1. ``http(s)://`` and ``file:`` URLs are returned unchanged.
    2. Anything else is a (percent-encoded) path, resolved against
       *base_dir*, and returned as a ``file://`` URI.
    """
    if _URL_SCHEME_RE.match(src):
        return src

    abs_path = (Path(base_dir) / unquote(src)).expanduser().resolve()
    return abs_path.as_uri()


def is_local_url(url: str) -> bool:
    return urlparse(url).scheme.lower() == "file"


def file_uri_to_path(url: str) -> Path:
    """Inverse of :func:`resolve_asset` for ``file:`` URLs."""
    return Path(url2pathname(urlparse(url).path))


@contextmanager
def atomic_output(path: Path) -> Iterator[Path]:
    """Yield a scratch path beside *path* and move it into place on success.

    Concurrent writers of the same cache file each get their own scratch
    file, so readers only ever see a complete *path*.
    """
    fd, scratch = tempfile.mkstemp(prefix=f".{path.stem}_", suffix=path.suffix, dir=path.parent)
    os.close(fd)
    scratch_path = Path(scratch)
    try:
        yield scratch_path
        os.replace(scratch_path, path)
    finally:
        if scratch_path.exists():
            scratch_path.unlink()
