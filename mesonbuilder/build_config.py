import os
from dataclasses import dataclass, field
from typing import List, Optional

from .target import OS, Architecture, BuildMode, IOSSdk, LinkModePreference, Target

DEFAULT_OUTPUT_DIR = os.path.join(".mesonbuilder", "build")


@dataclass(frozen=True)
class CCompilerConfig:
    """Explicit toolchain paths that skip discovery for their slot."""

    compiler: Optional[str] = None
    linker: Optional[str] = None
    archiver: Optional[str] = None
    strip: Optional[str] = None
    env_script: Optional[str] = None
    env_script_arguments: Optional[List[str]] = None


@dataclass(frozen=True)
class BuildConfig:
    package_name: str
    package_root: str
    output_directory: str
    target_os: OS
    target_architecture: Architecture
    build_mode: BuildMode = BuildMode.RELEASE
    link_mode_preference: LinkModePreference = LinkModePreference.DYNAMIC
    dry_run: bool = False
    target_ios_sdk: Optional[IOSSdk] = None
    target_android_ndk_api: Optional[int] = None
    c_compiler: CCompilerConfig = field(default_factory=CCompilerConfig)

    @property
    def target(self):
        return Target.from_architecture_and_os(self.target_architecture, self.target_os)


def _enum_value(enum_cls, value, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {enum_cls.__name__} '{value}'. Expected one of: {choices}.") from None


def c_compiler_from_toml(table):
    table = table or {}
    arguments = table.get("env_script_args")
    return CCompilerConfig(
        compiler=table.get("cc"),
        linker=table.get("ld"),
        archiver=table.get("ar"),
        strip=table.get("strip"),
        env_script=table.get("env_script"),
        env_script_arguments=list(arguments) if arguments is not None else None,
    )


def build_config_from_toml(conf, path=".", **overrides):
    """
    Builds a BuildConfig from a loaded mesonbuilder.toml and CLI overrides.

    Args:
        conf (dict): The loaded configuration (may be empty).
        path (str): The package root; relative paths in the config resolve against it.
        overrides: Values which win over the [build] table, e.g. os="android".
            None means "not given".

    Returns:
        BuildConfig. The target OS and architecture default to the build host.
    """
    build = dict(conf.get("build", {}))
    build.update({key: value for key, value in overrides.items() if value is not None})

    package_root = os.path.abspath(path)
    output_dir = build.get("output_dir") or DEFAULT_OUTPUT_DIR
    ndk_api = build.get("android_ndk_api")

    return BuildConfig(
        package_name=conf.get("package", {}).get("name") or os.path.basename(package_root),
        package_root=package_root,
        output_directory=os.path.join(package_root, output_dir),
        target_os=_enum_value(OS, build.get("os"), None) or OS.current(),
        target_architecture=_enum_value(Architecture, build.get("architecture"), None) or Architecture.current(),
        build_mode=_enum_value(BuildMode, build.get("build_mode"), BuildMode.RELEASE),
        link_mode_preference=_enum_value(
            LinkModePreference, build.get("link_mode_preference"), LinkModePreference.DYNAMIC
        ),
        dry_run=bool(build.get("dry_run", False)),
        target_ios_sdk=_enum_value(IOSSdk, build.get("ios_sdk"), None),
        target_android_ndk_api=int(ndk_api) if ndk_api is not None else None,
        c_compiler=c_compiler_from_toml(conf.get("c_compiler")),
    )
