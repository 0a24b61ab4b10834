"""File system helpers: working directory, existence checks and downloads."""

from __future__ import annotations

import os

import requests

_CHUNK_SIZE = 64 * 1024


def pwd() -> str:
    """Return the current working directory, always with forward slashes."""
    path = os.getcwd()
    if os.name == "nt":
        path = path.replace("\\", "/")
    return path


BOT_PATH = pwd()


def is_exist(path: str | os.PathLike[str]) -> bool:
    """Return True if the file or directory at ``path`` can be stat'ed."""
    try:
        os.stat(path)
    except OSError:
        return False
    return True


def is_not_exist(path: str | os.PathLike[str]) -> bool:
    """Return True only if ``path`` is known not to exist.

    Other failures, such as a permission error, give False.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return True
    except OSError:
        return False
    return False


def download_to(url: str, path: str | os.PathLike[str], check_cert: bool = True) -> None:
    """Download ``url`` into the file at ``path``.

    With ``check_cert`` false the server certificate is not verified.
    Network errors propagate as :mod:`requests` exceptions.
    """
    with requests.get(url, verify=check_cert, stream=True) as response:
        with open(path, "wb") as out:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                out.write(chunk)