import click
from .. import native_toolchain as tc
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command(name="list-tools")
@click.pass_context
@handle_exceptions
def list_tools(ctx):
    """List every instance found for each known tool."""
    logger.info("Listing tools...")
    for family, tools in tc.KNOWN_TOOLS.items():
        logger.step_info(f"{family}:")
        for tool in tools:
            instances = [i for i in tool.default_resolver.resolve() if i.tool == tool]
            if not instances:
                logger.step_info(f"{tool.name}: Not found", indent=2)
                continue
            logger.step_info(f"{tool.name}:", indent=2)
            for instance in instances:
                version = instance.version if instance.version is not None else "unknown version"
                logger.step_info(f"- {version} at {instance.path}", indent=4)
