import click
from .commands import build, clean, config, doctor, list_tools, log, version


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """Build Meson projects for native targets."""
    ctx.obj = {"path": path}

cli.add_command(build)
cli.add_command(clean)
cli.add_command(config)
cli.add_command(doctor)
cli.add_command(list_tools)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
