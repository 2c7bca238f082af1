import click
import json
from .. import config as config_module
from ..build_config import build_config_from_toml
from ..builder import builder_from_toml
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..output import BuildOutput
from ..target import OS, Architecture, BuildMode, IOSSdk, LinkModePreference


def _choices(enum_cls):
    return click.Choice([member.value for member in enum_cls], case_sensitive=False)


def _parse_define(ctx, param, values):
    options = {}
    for value in values:
        key, separator, option_value = value.partition("=")
        if not separator or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{value}'.", ctx=ctx, param=param)
        options[key] = option_value
    return options


@click.command()
@click.pass_context
@click.option("--os", "target_os", type=_choices(OS), default=None, help="Target operating system. Defaults to the host.")
@click.option("--arch", "architecture", type=_choices(Architecture), default=None, help="Target architecture. Defaults to the host.")
@click.option("--build-mode", type=_choices(BuildMode), default=None, help="Build mode (debug or release).")
@click.option("--link-mode-preference", type=_choices(LinkModePreference), default=None, help="How libraries should be linked.")
@click.option("--ios-sdk", type=_choices(IOSSdk), default=None, help="iOS SDK to build against.")
@click.option("--android-ndk-api", type=int, default=None, help="Android NDK API level.")
@click.option("--output-dir", default=None, help="Build output directory, relative to the project.")
@click.option("--dry-run", is_flag=True, help="Only report the assets a build would produce.")
@click.option("-D", "defines", multiple=True, callback=_parse_define, help="Meson option as KEY=VALUE. Repeatable.")
@handle_exceptions
def build(ctx, target_os, architecture, build_mode, link_mode_preference, ios_sdk, android_ndk_api, output_dir, dry_run, defines):
    """Build the configured Meson target."""
    path = ctx.obj["path"]
    conf = config_module.load_config(path=path)
    if not conf.get("meson", {}).get("target"):
        logger.error("Error: No Meson target configured in mesonbuilder.toml.")
        logger.info("Set 'target' in the [meson] table, e.g. target = \"add\".")
        raise SystemExit(1)

    # -D options win over the [meson.options] table.
    if defines:
        conf.setdefault("meson", {}).setdefault("options", {}).update(defines)

    build_config = build_config_from_toml(
        conf,
        path=path,
        os=target_os,
        architecture=architecture,
        build_mode=build_mode,
        link_mode_preference=link_mode_preference,
        ios_sdk=ios_sdk,
        android_ndk_api=android_ndk_api,
        output_dir=output_dir,
        dry_run=dry_run or None,
    )
    builder = builder_from_toml(conf)

    output = builder.run(build_config, BuildOutput())

    if build_config.dry_run:
        click.echo(json.dumps(output.to_json(), indent=2))
        logger.success(f"Dry run for {build_config.target_os} complete.")
        return

    output.write(build_config.output_directory)
    logger.success(f"Build for {build_config.target} completed successfully.")
