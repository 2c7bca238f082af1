import click
import os
import shutil
from .. import config as config_module
from ..build_config import build_config_from_toml
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def clean(ctx):
    """Remove the build output directory."""
    conf = config_module.load_config(path=ctx.obj["path"])
    output_directory = build_config_from_toml(conf, path=ctx.obj["path"]).output_directory

    if not os.path.isdir(output_directory):
        logger.info("Project is already clean.")
        return

    logger.info(f"Attempting to remove directory {output_directory}...")
    try:
        shutil.rmtree(output_directory)
    except OSError as e:
        logger.error(f"Error removing directory {output_directory}: {e}")
        logger.info("Please check file permissions and ensure the directory is not in use.")
        raise SystemExit(1)
    logger.success(f"Removed directory {output_directory}")
