"""Version of the installed gws-tools distribution."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "gws-tools"


def _get_version() -> str:
    """Read the version from package metadata, then from a source checkout's VERSION file."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        pass

    # src/gws_tools/__version__.py -> repository root
    version_file = Path(__file__).resolve().parents[2] / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "0.0.0+unknown"


__version__ = _get_version()
