"""Single source of version truth — read from package metadata at import time."""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("pagewiki")
except PackageNotFoundError:
    # Running from a source checkout without ``pip install -e .``
    __version__ = "0.0.0"
