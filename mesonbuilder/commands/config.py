import click
import toml
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions

def _load_or_fail(ctx):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No mesonbuilder.toml found. Please create one in the project directory.")
        raise SystemExit(1)
    return conf

def _parse_value(value):
    """Interpret value as a TOML value (number, bool, list), falling back to a string."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except toml.TomlDecodeError:
        return value

@click.group()
@click.pass_context
def config(ctx):
    """View or edit the mesonbuilder.toml configuration file."""
    pass

@config.command()
@click.pass_context
@handle_exceptions
def view(ctx):
    """View the contents of the mesonbuilder.toml file."""
    _load_or_fail(ctx)
    with open(config_module.config_path(ctx.obj["path"]), "r") as f:
        click.echo(f.read())

@config.command()
@click.pass_context
@handle_exceptions
def edit(ctx):
    """Edit the mesonbuilder.toml file in your default editor."""
    _load_or_fail(ctx)
    click.edit(filename=config_module.config_path(ctx.obj["path"]))

@config.command()
@click.argument("key")
@click.pass_context
@handle_exceptions
def get(ctx, key):
    """Get a value, e.g. 'build.android_ndk_api'."""
    value = _load_or_fail(ctx)
    try:
        for k in key.split("."):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in mesonbuilder.toml")
        raise SystemExit(1)
    click.echo(value)

@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
@handle_exceptions
def set_(ctx, key, value):
    """Set a value, e.g. 'build.os android'. Creates the file if needed."""
    conf = config_module.load_config(path=ctx.obj["path"])

    keys = key.split(".")
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = _parse_value(value)

    if not config_module.save_config(conf, path=ctx.obj["path"]):
        raise SystemExit(1)
    logger.info(f"Set '{key}' to '{value}'")
