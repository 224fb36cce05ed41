"""Version command."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from .shared import app, console


@app.command()
def version() -> None:
    """Show the installed zapgate version."""
    try:
        current_version = pkg_version("zapgate")
    except PackageNotFoundError:
        current_version = "0.0.0+unknown"

    console.print(f"zapgate {current_version}")
