"""Package version, from installed metadata or the source checkout's pyproject.toml."""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "campus-market"
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _read_version() -> str:
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        pass

    # Running from a checkout without an install
    if _PYPROJECT.is_file():
        return str(tomllib.loads(_PYPROJECT.read_text())["project"]["version"])
    raise RuntimeError(f"Could not determine {DISTRIBUTION} version")


__version__ = _read_version()

__all__ = ["__version__"]
