import os
import shutil
from concurrent.futures import ThreadPoolExecutor

from packaging.specifiers import SpecifierSet

from . import cross_file
from . import native_toolchain as tc
from .cli_logger import logger
from .compiler_resolver import CompilerResolver, load_required_tool
from .config import get_meson_options
from .errors import UnsupportedVersion
from .output import CodeAsset
from .target import OS, LinkMode, Target
from .utils import collect_project_files, environment_from_batch_file, run_checked

SUPPORTED_MESON_VERSIONS = SpecifierSet(">=1.0.0,<2.0.0")

LIBRARY = "library"
EXECUTABLE = "executable"


def parse_meson_target(target):
    """Split a Meson target such as ``sub/dir/name`` into (``sub/dir``, ``name``).

    The directory part is None for top-level targets.
    """
    parts = target.split("/")
    if len(parts) >= 2:
        return "/".join(parts[:-1]), parts[-1]
    return None, target


def _prepend_to_path(environment, directory):
    environment = dict(environment)
    # Windows spells it "Path" in the captured environment.
    key = next((k for k in environment if k.upper() == "PATH"), "PATH")
    current = environment.get(key)
    environment[key] = directory + os.pathsep + current if current else directory
    return environment


class RunMesonBuilder:
    """
    Configures and compiles one target of a Meson project for one build target.

    Each run starts from an empty output directory, resolves the tools it needs
    and writes a fresh cross file before invoking ``meson setup`` and
    ``meson compile``.
    """

    def __init__(
        self,
        build_config,
        project_dir,
        meson_target,
        link_mode,
        options=None,
        meson_instance=None,
        compiler_resolver=None,
        host=None,
    ):
        self.build_config = build_config
        self.project_dir = project_dir
        self.meson_target = meson_target
        self.link_mode = link_mode
        self.options = dict(options or {})
        self.meson_instance = meson_instance
        self.host = host or Target.current()
        self.compiler_resolver = compiler_resolver or CompilerResolver(build_config, host=self.host)
        self.out_dir = build_config.output_directory

    def run(self):
        config = self.build_config
        target = config.target
        cross_file.validate_target(target, config.target_ios_sdk, config.target_android_ndk_api)

        logger.info(f"Building {self.meson_target} for {target} ({config.build_mode})...")
        meson, ninja, compiler, linker, archiver, strip = self._resolve_tools()

        self._check_meson_version(meson)

        cross_spec = cross_file.build_cross_spec(
            target,
            self.link_mode,
            compiler,
            linker,
            archiver,
            strip,
            ios_sdk=config.target_ios_sdk,
            android_ndk_api=config.target_android_ndk_api,
            host=self.host,
        )
        cross_file_path = cross_file.write_cross_file(cross_spec, self.out_dir)

        environment = self._compiler_environment(compiler)

        run_checked(
            "configure",
            [
                meson.path, "setup",
                "--backend", "ninja",
                "--cross", cross_file_path,
                *[f"-D{key}={value}" for key, value in self.options.items()],
                self.out_dir,
            ],
            env=environment,
            cwd=self.project_dir,
        )

        run_checked(
            "compile",
            [meson.path, "compile", "-C", self.out_dir, self.meson_target],
            env=_prepend_to_path(environment, os.path.dirname(ninja.path)),
            cwd=self.project_dir,
        )
        logger.success(f"Built {self.meson_target} for {target}.")

    def _resolve_tools(self):
        """Clean the output directory and resolve all tools concurrently.

        Every branch runs to completion; the first failure in submission order
        is raised.
        """
        resolver = self.compiler_resolver
        with ThreadPoolExecutor() as executor:
            futures = [
                executor.submit(self._clean_out_dir),
                executor.submit(self._load_meson),
                executor.submit(load_required_tool, tc.ninja, self.build_config.target),
                executor.submit(resolver.resolve_compiler),
                executor.submit(resolver.resolve_linker),
                executor.submit(resolver.resolve_archiver),
                executor.submit(resolver.resolve_strip),
            ]

        for future in futures:
            error = future.exception()
            if error is not None:
                raise error
        return tuple(future.result() for future in futures[1:])

    def _clean_out_dir(self):
        if os.path.exists(self.out_dir):
            logger.info(f"  - Cleaning {self.out_dir}")
            shutil.rmtree(self.out_dir)
        os.makedirs(self.out_dir)

    def _load_meson(self):
        if self.meson_instance is not None:
            return self.meson_instance
        return load_required_tool(tc.meson, self.build_config.target)

    def _check_meson_version(self, meson):
        version = meson.version
        if version is None or version not in SUPPORTED_MESON_VERSIONS:
            detected = str(version) if version is not None else "unknown"
            logger.error(
                f"Meson version {detected} is not in the range of supported versions "
                f"({SUPPORTED_MESON_VERSIONS})."
            )
            raise UnsupportedVersion(meson.tool.name, detected, str(SUPPORTED_MESON_VERSIONS))

    def _compiler_environment(self, compiler):
        """The environment for Meson: vcvarsall's for MSVC, ours otherwise."""
        if self.build_config.target.os != OS.WINDOWS:
            return dict(os.environ)
        script = self.compiler_resolver.toolchain_environment_script(compiler)
        arguments = self.compiler_resolver.toolchain_environment_script_arguments()
        return environment_from_batch_file(script, arguments)


class MesonBuilder:
    """
    Builds a library or executable target of a Meson project and records the
    resulting asset and the project files the build depends on.

    Use :meth:`library` or :meth:`executable` to create one.
    """

    def __init__(
        self,
        builder_type,
        project,
        target,
        asset_name=None,
        link_mode=None,
        options=None,
        subprojects=(),
        exclude_from_dependencies=(),
    ):
        self.builder_type = builder_type
        self.project = project
        self.target = target
        self.asset_name = asset_name
        self.link_mode = link_mode
        self.options = dict(options or {})
        self.subprojects = list(subprojects)
        self.exclude_from_dependencies = list(exclude_from_dependencies)

    @classmethod
    def library(cls, asset_name, project, target, link_mode=None, options=None,
                subprojects=(), exclude_from_dependencies=()):
        return cls(LIBRARY, project, target, asset_name, link_mode, options,
                   subprojects, exclude_from_dependencies)

    @classmethod
    def executable(cls, project, target, asset_name=None, options=None,
                   subprojects=(), exclude_from_dependencies=()):
        return cls(EXECUTABLE, project, target, asset_name, None, options,
                   subprojects, exclude_from_dependencies)

    def resolved_link_mode(self, config):
        if self.link_mode is not None:
            return self.link_mode
        return config.link_mode_preference.link_mode

    def meson_target_type(self, link_mode):
        if self.builder_type == EXECUTABLE:
            return EXECUTABLE
        return link_mode.meson_target_type

    def meson_options(self, config, link_mode):
        """Options passed as -D flags: buildtype (and default_library), then the user's."""
        options = {"buildtype": config.build_mode.value}
        if self.builder_type == LIBRARY:
            options["default_library"] = link_mode.library_type
        options.update(self.options)
        return options

    def artifact_path(self, config, link_mode):
        target_dir, name = parse_meson_target(self.target)
        out_dir = config.output_directory
        if target_dir is not None:
            out_dir = os.path.join(out_dir, *target_dir.split("/"))
        if self.builder_type == EXECUTABLE:
            return os.path.join(out_dir, config.target_os.executable_file_name(name))
        return os.path.join(out_dir, config.target_os.library_file_name(name, link_mode))

    def run(self, config, output, compiler_resolver=None, meson_instance=None):
        """
        Runs the build and records its results in output.

        Args:
            config (BuildConfig): What to build for and where.
            output (BuildOutput): Receives the asset records and dependencies.
            compiler_resolver (CompilerResolver, optional): Replaces the default
                toolchain discovery.
            meson_instance (ToolInstance, optional): Meson to use instead of
                resolving one.

        A dry run spawns no process and writes nothing. It records one asset
        per target of the requested OS; their files do not exist.
        """
        project_dir = os.path.join(config.package_root, self.project)
        link_mode = self.resolved_link_mode(config)

        if not config.dry_run:
            RunMesonBuilder(
                config,
                project_dir,
                f"{self.target}:{self.meson_target_type(link_mode)}",
                link_mode,
                self.meson_options(config, link_mode),
                meson_instance=meson_instance,
                compiler_resolver=compiler_resolver,
            ).run()

        if self.asset_name is not None:
            if config.dry_run:
                targets = Target.for_os(config.target_os)
            else:
                targets = [config.target]
            file = self.artifact_path(config, link_mode)
            for target in targets:
                output.add_asset(CodeAsset(
                    package=config.package_name,
                    name=self.asset_name,
                    link_mode=link_mode,
                    os=target.os,
                    architecture=target.architecture,
                    file=file,
                ))

        if not config.dry_run:
            output.add_dependencies(collect_project_files(
                project_dir,
                exclude=self.exclude_from_dependencies,
                subprojects=self.subprojects,
            ))
        return output


def builder_from_toml(conf):
    """Create the MesonBuilder described by the [meson] table of mesonbuilder.toml."""
    meson = conf.get("meson", {})
    target = meson.get("target")
    if not target:
        raise ValueError("No Meson target configured. Set 'target' in the [meson] table of mesonbuilder.toml.")

    builder_type = meson.get("type", LIBRARY)
    link_mode = meson.get("link_mode")
    kwargs = dict(
        project=meson.get("project", "."),
        target=target,
        options=get_meson_options(conf),
        subprojects=meson.get("subprojects", []),
        exclude_from_dependencies=meson.get("exclude_from_dependencies", []),
    )
    if builder_type == EXECUTABLE:
        return MesonBuilder.executable(asset_name=meson.get("asset_name"), **kwargs)
    if builder_type != LIBRARY:
        raise ValueError(f"Invalid Meson target type '{builder_type}'. Expected 'library' or 'executable'.")
    return MesonBuilder.library(
        asset_name=meson.get("asset_name") or parse_meson_target(target)[1],
        link_mode=LinkMode(link_mode) if link_mode else None,
        **kwargs,
    )
