import click
from .. import config as config_module
from .. import native_toolchain as tc
from ..build_config import build_config_from_toml
from ..builder import SUPPORTED_MESON_VERSIONS
from ..cli_logger import logger
from ..compiler_resolver import CompilerResolver, load_tool
from ..decorators import handle_exceptions
from ..errors import ToolNotFound

@click.command()
@click.pass_context
@handle_exceptions
def doctor(ctx):
    """Check that Meson, Ninja and a toolchain for the configured target are available."""
    logger.info("Running environment check...")
    ok = True

    meson = load_tool(tc.meson)
    if meson is None:
        logger.error("Meson: Not found. Install it with 'pip install meson'.")
        ok = False
    elif meson.version is None or meson.version not in SUPPORTED_MESON_VERSIONS:
        logger.error(f"Meson: {meson} is not supported. Supported versions: {SUPPORTED_MESON_VERSIONS}.")
        ok = False
    else:
        logger.success(f"Meson: {meson}")

    ninja = load_tool(tc.ninja)
    if ninja is None:
        logger.error("Ninja: Not found. Install it with 'pip install ninja'.")
        ok = False
    else:
        logger.success(f"Ninja: {ninja}")

    conf = config_module.load_config(path=ctx.obj["path"])
    build_config = build_config_from_toml(conf, path=ctx.obj["path"])
    logger.info(f"Checking toolchain for {build_config.target}...")
    resolver = CompilerResolver(build_config)
    for name, resolve in [
        ("Compiler", resolver.resolve_compiler),
        ("Linker", resolver.resolve_linker),
        ("Archiver", resolver.resolve_archiver),
    ]:
        try:
            logger.success(f"{name}: {resolve()}")
        except ToolNotFound as e:
            logger.error(f"{name}: {e.message}")
            ok = False

    strip = resolver.resolve_strip()
    if strip is not None:
        logger.success(f"Strip: {strip}")

    if ok:
        logger.success("Environment check completed successfully.")
    else:
        logger.error("Environment check found issues. Please review the errors above.")
        raise SystemExit(1)
