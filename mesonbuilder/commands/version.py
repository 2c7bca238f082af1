import click
import importlib.metadata
from ..builder import SUPPORTED_MESON_VERSIONS
from ..cli_logger import logger

PACKAGE_NAME = "mesonbuilder"

@click.command()
def version():
    """Print the installed mesonbuilder version and the Meson versions it drives."""
    try:
        installed = importlib.metadata.version(PACKAGE_NAME)
    except importlib.metadata.PackageNotFoundError:
        logger.error(f"{PACKAGE_NAME} is not installed as a package; its version is unknown.")
        logger.info("Install it with 'pip install -e .' from the source checkout.")
        raise SystemExit(1)
    logger.success(f"{PACKAGE_NAME} version {installed}")
    logger.step_info(f"Supported Meson versions: {SUPPORTED_MESON_VERSIONS}", indent=2)
