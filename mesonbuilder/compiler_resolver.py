import os

from . import native_toolchain as tc
from .cli_logger import logger
from .errors import ToolNotFound
from .target import OS, Target
from .utils.tool_resolver import CliVersionResolver, Tool, ToolInstance

COMPILER = "compiler"
LINKER = "linker"
ARCHIVER = "archiver"
STRIP = "strip"

SLOT_NAMES = {
    COMPILER: "C compiler",
    LINKER: "linker",
    ARCHIVER: "archiver",
    STRIP: "strip",
}

# Clang first, GCC as the generic fallback for native builds.
NATIVE_TOOLS = {
    COMPILER: [tc.clang, tc.gcc],
    LINKER: [tc.lld, tc.gnu_linker],
    ARCHIVER: [tc.llvm_ar, tc.gnu_archiver],
    STRIP: [tc.llvm_strip, tc.gnu_strip],
}

ANDROID_NDK_TOOLS = {
    COMPILER: [tc.android_ndk_clang],
    LINKER: [tc.android_ndk_lld],
    ARCHIVER: [tc.android_ndk_llvm_ar],
    STRIP: [tc.android_ndk_llvm_strip],
}

APPLE_TOOLS = {
    COMPILER: [tc.apple_clang],
    LINKER: [tc.apple_linker],
    ARCHIVER: [tc.apple_archiver],
    STRIP: [tc.apple_strip],
}


def load_tool(tool):
    """Return the best instance of a tool found by its default resolver, or None."""
    instances = [i for i in tool.default_resolver.resolve() if i.tool == tool]
    return instances[0] if instances else None


def load_required_tool(tool, target=None):
    instance = load_tool(tool)
    if instance is None:
        logger.error(f"Tool {tool.name} not found.")
        raise ToolNotFound(tool.name, target)
    logger.info(f"  - Found {instance}")
    return instance


class CompilerResolver:
    """
    Resolves the compiler, linker, archiver and strip tool for a build.

    Explicit paths from the build config's C compiler settings win; otherwise
    the tools are picked per (host, target) pair, preferring the vendor
    toolchain of the target platform.
    """

    def __init__(self, build_config, host=None):
        self.build_config = build_config
        self.host = host or Target.current()
        self.target = build_config.target

    # -------------------- Candidate selection --------------------

    def candidate_tools(self, slot):
        target_os = self.target.os
        architecture = self.target.architecture

        if target_os == OS.ANDROID:
            return ANDROID_NDK_TOOLS[slot]

        if self.host.os == OS.LINUX and target_os == OS.LINUX:
            if self.host.architecture == architecture:
                return NATIVE_TOOLS[slot]
            toolchain = tc.GNU_CROSS_TOOLCHAINS.get(architecture)
            return [toolchain[slot]] if toolchain else []

        if self.host.os == OS.MACOS and target_os in (OS.MACOS, OS.IOS):
            return APPLE_TOOLS[slot]

        if self.host.os == OS.WINDOWS and target_os == OS.WINDOWS:
            toolchain = tc.MSVC_TOOLCHAINS.get(architecture, {})
            return [toolchain[slot]] if slot in toolchain else []

        if self.host == self.target:
            return NATIVE_TOOLS[slot]
        return []

    # -------------------- Overrides --------------------

    def _override_path(self, slot):
        c_compiler = self.build_config.c_compiler
        return {
            COMPILER: c_compiler.compiler,
            LINKER: c_compiler.linker,
            ARCHIVER: c_compiler.archiver,
            STRIP: c_compiler.strip,
        }[slot]

    def _compiler_tool_for_path(self, path):
        name = os.path.basename(path).lower()
        if name.endswith(".exe"):
            name = name[:-len(".exe")]
        if name == "cl":
            toolchain = tc.MSVC_TOOLCHAINS.get(self.target.architecture)
            return toolchain[COMPILER] if toolchain else Tool("MSVC cl")
        for tool in tc.GCC_FAMILY:
            if tool.name == name:
                return tool
        if "clang" in name:
            return tc.android_ndk_clang if self.target.os == OS.ANDROID else tc.clang
        if "gcc" in name:
            return tc.gcc
        return Tool(name)

    def _load_override(self, slot):
        path = self._override_path(slot)
        if not path:
            return None
        if not os.path.exists(path):
            raise ToolNotFound(
                SLOT_NAMES[slot],
                self.target,
                hint=f"The configured path {path} does not exist.",
            )

        if slot == COMPILER:
            tool = self._compiler_tool_for_path(path)
            instance = ToolInstance(tool, path)
            # cl.exe has no --version flag.
            if not tool.name.startswith("MSVC cl"):
                instance = CliVersionResolver(None).lookup_version(instance)
        else:
            instance = ToolInstance(Tool(f"{SLOT_NAMES[slot]} ({os.path.basename(path)})"), path)
        logger.info(f"  - Using configured {SLOT_NAMES[slot]}: {instance}")
        return instance

    # -------------------- Resolution --------------------

    def _resolve(self, slot, required=True):
        instance = self._load_override(slot)
        if instance is not None:
            return instance

        candidates = self.candidate_tools(slot)
        for tool in candidates:
            instance = load_tool(tool)
            if instance is not None:
                logger.info(f"  - Found {SLOT_NAMES[slot]}: {instance}")
                return instance

        if not required:
            logger.warning(f"  - No {SLOT_NAMES[slot]} found for {self.target}. Skipping.")
            return None

        tried = ", ".join(tool.name for tool in candidates) or "none configured for this host"
        logger.error(f"No {SLOT_NAMES[slot]} found for {self.target} (tried: {tried}).")
        raise ToolNotFound(
            SLOT_NAMES[slot],
            self.target,
            hint=f"Tried: {tried}. Install a toolchain for {self.target} or set it in [c_compiler].",
        )

    def resolve_compiler(self):
        return self._resolve(COMPILER)

    def resolve_linker(self):
        return self._resolve(LINKER)

    def resolve_archiver(self):
        return self._resolve(ARCHIVER)

    def resolve_strip(self):
        return self._resolve(STRIP, required=False)

    # -------------------- MSVC environment --------------------

    def toolchain_environment_script(self, compiler):
        """Path of the script that sets up the environment for compiler, e.g. vcvarsall.bat."""
        configured = self.build_config.c_compiler.env_script
        if configured:
            return configured

        instances = [i for i in tc.vcvarsall.default_resolver.resolve() if i.tool == tc.vcvarsall]
        if not instances:
            raise ToolNotFound(tc.vcvarsall.name, self.target)

        # Prefer the script of the Visual Studio install the compiler lives in.
        compiler_path = os.path.normcase(compiler.path)
        for instance in instances:
            install_root = os.path.normcase(os.path.dirname(os.path.dirname(os.path.dirname(
                os.path.dirname(instance.path)
            ))))
            if compiler_path.startswith(install_root):
                return instance.path
        return instances[0].path

    def toolchain_environment_script_arguments(self):
        configured = self.build_config.c_compiler
        if configured.env_script_arguments is not None:
            return list(configured.env_script_arguments)
        if configured.env_script:
            return []
        return tc.vcvarsall_arguments(self.target.architecture)
