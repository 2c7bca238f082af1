import glob
import json
import os
import shutil
import sys
import sysconfig

from packaging.version import InvalidVersion, Version

from ...cli_logger import logger
from ..command_executor import run_shell_command
from .base_resolver import Tool, ToolInstance, ToolResolver, sort_instances

HOMEBREW_PREFIXES = ["/opt/homebrew/bin", "/usr/local/bin"]

VSWHERE_PATH = os.path.join(
    os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"),
    "Microsoft Visual Studio", "Installer", "vswhere.exe",
)


def _is_executable(path):
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _executable_file_name(executable_name):
    if sys.platform == "win32" and not executable_name.lower().endswith(".exe"):
        return f"{executable_name}.exe"
    return executable_name


class PathToolResolver(ToolResolver):
    """Looks the executable up on PATH."""

    def __init__(self, tool_name, executable_name):
        self.tool = Tool(tool_name)
        self.executable_name = executable_name

    def resolve(self):
        path = shutil.which(self.executable_name)
        if path is None:
            return []
        logger.debug(f"  - Found {self.tool.name} on PATH: {path}")
        return [ToolInstance(self.tool, path)]


class HomebrewExecutableResolver(ToolResolver):
    """Looks in Homebrew's bin directories. Only active on macOS hosts."""

    def __init__(self, tool_name, executable_name, prefixes=None):
        self.tool = Tool(tool_name)
        self.executable_name = executable_name
        self.prefixes = prefixes or HOMEBREW_PREFIXES

    def resolve(self):
        if sys.platform != "darwin":
            return []
        instances = []
        for prefix in self.prefixes:
            path = os.path.join(prefix, self.executable_name)
            if _is_executable(path):
                instances.append(ToolInstance(self.tool, path))
        return instances


_SCRIPTS_DIR_SNIPPET = "import sysconfig; print(sysconfig.get_path('scripts'))"


class PythonExecutableResolver(ToolResolver):
    """Looks in the scripts directories of Python installations.

    Covers tools installed with ``pip install meson ninja``: the running
    interpreter's scripts directories are checked, then those reported by the
    ``python3`` found on PATH.
    """

    def __init__(self, tool_name, executable_name, interpreters=("python3",)):
        self.tool = Tool(tool_name)
        self.executable_name = executable_name
        self.interpreters = list(interpreters)

    def _scripts_dirs(self):
        dirs = [sysconfig.get_path("scripts")]
        try:
            dirs.append(sysconfig.get_path("scripts", f"{os.name}_user"))
        except KeyError:
            pass

        for interpreter in self.interpreters:
            interpreter_path = shutil.which(interpreter)
            if interpreter_path is None:
                continue
            stdout, _, returncode = run_shell_command([interpreter_path, "-c", _SCRIPTS_DIR_SNIPPET])
            if returncode == 0 and stdout.strip():
                dirs.append(stdout.strip())
        return [d for d in dirs if d]

    def resolve(self):
        instances = []
        file_name = _executable_file_name(self.executable_name)
        for scripts_dir in self._scripts_dirs():
            path = os.path.join(scripts_dir, file_name)
            if _is_executable(path):
                instances.append(ToolInstance(self.tool, path))
        return sort_instances(instances)


class InstallLocationResolver(ToolResolver):
    """Globs well-known install locations.

    Patterns may reference environment variables and ``~``; a pattern whose
    variables are not set is skipped.
    """

    def __init__(self, tool_name, paths):
        self.tool = Tool(tool_name)
        self.paths = list(paths)

    def resolve(self):
        instances = []
        for pattern in self.paths:
            expanded = os.path.expanduser(os.path.expandvars(pattern))
            if "$" in expanded or "%" in expanded:
                continue
            for path in sorted(glob.glob(expanded)):
                instances.append(ToolInstance(self.tool, os.path.normpath(path)))
        return sort_instances(instances)


class PropertiesFileVersionResolver(ToolResolver):
    """Reads an instance's version from a ``key=value`` file next to it.

    The Android NDK records its revision as ``Pkg.Revision`` in
    ``source.properties`` at its root.
    """

    def __init__(self, wrapped_resolver, file_name="source.properties", key="Pkg.Revision"):
        self.wrapped_resolver = wrapped_resolver
        self.file_name = file_name
        self.key = key

    def _read_version(self, instance):
        properties_path = os.path.join(instance.path, self.file_name)
        try:
            with open(properties_path, "r") as f:
                for line in f:
                    key, _, value = line.partition("=")
                    if key.strip() == self.key:
                        return Version(value.strip())
        except (OSError, InvalidVersion) as e:
            logger.warning(f"  - Could not read version from {properties_path}: {e}")
        return None

    def resolve(self):
        instances = []
        for instance in self.wrapped_resolver.resolve():
            if instance.version is None:
                version = self._read_version(instance)
                if version is not None:
                    instance = instance.with_version(version)
            instances.append(instance)
        return sort_instances(instances)


class RelativeToolResolver(ToolResolver):
    """Finds a tool relative to each instance of another tool.

    Used for the binaries inside an Android NDK or a Visual Studio install.
    The found instance inherits the version of the instance it was found in.
    """

    def __init__(self, tool_name, wrapped_resolver, relative_paths):
        self.tool = Tool(tool_name)
        self.wrapped_resolver = wrapped_resolver
        self.relative_paths = list(relative_paths)

    def resolve(self):
        instances = []
        for base in self.wrapped_resolver.resolve():
            for relative_path in self.relative_paths:
                for path in sorted(glob.glob(os.path.join(base.path, relative_path))):
                    instances.append(ToolInstance(self.tool, os.path.normpath(path), base.version))
        return sort_instances(instances)


class XcrunResolver(ToolResolver):
    """Asks ``xcrun`` for a tool of the active Xcode toolchain."""

    def __init__(self, tool_name, executable_name):
        self.tool = Tool(tool_name)
        self.executable_name = executable_name

    def resolve(self):
        if sys.platform != "darwin":
            return []
        stdout, stderr, returncode = run_shell_command(["xcrun", "--find", self.executable_name])
        if returncode != 0 or not stdout.strip():
            logger.debug(f"  - xcrun could not find {self.executable_name}: {stderr.strip()}")
            return []
        return [ToolInstance(self.tool, stdout.strip())]


class XcrunSdkResolver(ToolResolver):
    """Asks ``xcrun`` for the root path of an Apple platform SDK."""

    def __init__(self, tool_name, sdk):
        self.tool = Tool(tool_name)
        self.sdk = sdk

    def resolve(self):
        if sys.platform != "darwin":
            return []
        stdout, stderr, returncode = run_shell_command(["xcrun", "--sdk", self.sdk, "--show-sdk-path"])
        if returncode != 0 or not stdout.strip():
            logger.debug(f"  - xcrun could not find the {self.sdk} SDK: {stderr.strip()}")
            return []
        return [ToolInstance(self.tool, stdout.strip())]


class VisualStudioResolver(ToolResolver):
    """Lists Visual Studio installations with the C++ tools, using vswhere."""

    def __init__(self, tool_name="Visual Studio", vswhere_path=VSWHERE_PATH):
        self.tool = Tool(tool_name)
        self.vswhere_path = vswhere_path

    def resolve(self):
        if sys.platform != "win32" or not os.path.isfile(self.vswhere_path):
            return []
        stdout, stderr, returncode = run_shell_command([
            self.vswhere_path,
            "-products", "*",
            "-requires", "Microsoft.VisualStudio.Component.VC.Tools.x86.x64",
            "-format", "json",
            "-utf8",
        ])
        if returncode != 0:
            logger.warning(f"  - vswhere failed (Exit Code: {returncode}): {stderr.strip()}")
            return []
        try:
            installations = json.loads(stdout or "[]")
        except ValueError as e:
            logger.warning(f"  - Could not parse vswhere output: {e}")
            return []

        instances = []
        for installation in installations:
            path = installation.get("installationPath")
            if not path:
                continue
            try:
                version = Version(installation.get("installationVersion", ""))
            except InvalidVersion:
                version = None
            instances.append(ToolInstance(self.tool, path, version))
        return sort_instances(instances)
