"""The external tools mesonbuilder knows how to find, and how to find them."""

import sys

from .errors import UnsupportedTarget
from .target import Architecture
from .utils.tool_resolver import (
    CliVersionResolver,
    HomebrewExecutableResolver,
    InstallLocationResolver,
    PathToolResolver,
    PropertiesFileVersionResolver,
    PythonExecutableResolver,
    RelativeToolResolver,
    Tool,
    ToolResolvers,
    VisualStudioResolver,
    XcrunResolver,
    XcrunSdkResolver,
)


def _exe(name):
    return f"{name}.exe" if sys.platform == "win32" else name


def _cli_tool(name, executable_name, *extra_resolvers):
    return Tool(
        name,
        CliVersionResolver(ToolResolvers([
            PathToolResolver(name, executable_name),
            *extra_resolvers,
        ])),
    )


# -------------------- Build tools --------------------

meson = Tool(
    "Meson",
    CliVersionResolver(ToolResolvers([
        PathToolResolver("Meson", "meson"),
        HomebrewExecutableResolver("Meson", "meson"),
        PythonExecutableResolver("Meson", "meson"),
    ])),
)

ninja = Tool(
    "Ninja",
    CliVersionResolver(ToolResolvers([
        PathToolResolver("Ninja", "ninja"),
        HomebrewExecutableResolver("Ninja", "ninja"),
        PythonExecutableResolver("Ninja", "ninja"),
    ])),
)

# -------------------- Host toolchains --------------------

clang = _cli_tool("Clang", "clang")
gcc = _cli_tool("GCC", "gcc")
lld = Tool("LLD", PathToolResolver("LLD", "ld.lld"))
gnu_linker = Tool("GNU linker", PathToolResolver("GNU linker", "ld"))
llvm_ar = Tool("LLVM archiver", PathToolResolver("LLVM archiver", "llvm-ar"))
gnu_archiver = Tool("GNU archiver", PathToolResolver("GNU archiver", "ar"))
llvm_strip = Tool("LLVM strip", PathToolResolver("LLVM strip", "llvm-strip"))
gnu_strip = Tool("GNU strip", PathToolResolver("GNU strip", "strip"))

# GNU triples of the Debian/Ubuntu cross compiler packages.
GNU_CROSS_TRIPLES = {
    Architecture.ARM: "arm-linux-gnueabihf",
    Architecture.ARM64: "aarch64-linux-gnu",
    Architecture.IA32: "i686-linux-gnu",
    Architecture.RISCV64: "riscv64-linux-gnu",
    Architecture.X64: "x86_64-linux-gnu",
}


def _gnu_cross_toolchain(triple):
    return {
        "compiler": _cli_tool(f"{triple}-gcc", f"{triple}-gcc"),
        "linker": Tool(f"{triple}-ld", PathToolResolver(f"{triple}-ld", f"{triple}-ld")),
        "archiver": Tool(f"{triple}-gcc-ar", PathToolResolver(f"{triple}-gcc-ar", f"{triple}-gcc-ar")),
        "strip": Tool(f"{triple}-strip", PathToolResolver(f"{triple}-strip", f"{triple}-strip")),
    }


GNU_CROSS_TOOLCHAINS = {
    architecture: _gnu_cross_toolchain(triple)
    for architecture, triple in GNU_CROSS_TRIPLES.items()
}

# Compiler drivers that only accept linker names, not paths, through c_ld.
GCC_FAMILY = frozenset(
    [gcc] + [toolchain["compiler"] for toolchain in GNU_CROSS_TOOLCHAINS.values()]
)

# -------------------- Android NDK --------------------

android_ndk = Tool(
    "Android NDK",
    PropertiesFileVersionResolver(InstallLocationResolver("Android NDK", [
        "$ANDROID_NDK_HOME",
        "$ANDROID_NDK_ROOT",
        "$ANDROID_NDK",
        "$ANDROID_HOME/ndk/*",
        "$ANDROID_SDK_ROOT/ndk/*",
        "$ANDROID_HOME/ndk-bundle",
        "~/Android/Sdk/ndk/*",
        "~/Library/Android/sdk/ndk/*",
        "$LOCALAPPDATA/Android/Sdk/ndk/*",
    ])),
)


def _ndk_tool(name, executable_name):
    return Tool(name, RelativeToolResolver(
        name,
        android_ndk.default_resolver,
        [f"toolchains/llvm/prebuilt/*/bin/{_exe(executable_name)}"],
    ))


android_ndk_clang = _ndk_tool("Android NDK Clang", "clang")
android_ndk_lld = _ndk_tool("Android NDK LLD", "ld.lld")
android_ndk_llvm_ar = _ndk_tool("Android NDK LLVM archiver", "llvm-ar")
android_ndk_llvm_strip = _ndk_tool("Android NDK LLVM strip", "llvm-strip")

# -------------------- Xcode --------------------

apple_clang = Tool("Apple Clang", CliVersionResolver(XcrunResolver("Apple Clang", "clang")))
apple_linker = Tool("Apple linker", XcrunResolver("Apple linker", "ld"))
apple_archiver = Tool("Apple archiver", XcrunResolver("Apple archiver", "ar"))
apple_strip = Tool("Apple strip", XcrunResolver("Apple strip", "strip"))

macosx_sdk = Tool("macOS SDK", XcrunSdkResolver("macOS SDK", "macosx"))
iphoneos_sdk = Tool("iPhoneOS SDK", XcrunSdkResolver("iPhoneOS SDK", "iphoneos"))
iphonesimulator_sdk = Tool("iPhoneSimulator SDK", XcrunSdkResolver("iPhoneSimulator SDK", "iphonesimulator"))

# -------------------- Visual Studio --------------------

visual_studio = Tool("Visual Studio", VisualStudioResolver())

vcvarsall = Tool("vcvarsall.bat", RelativeToolResolver(
    "vcvarsall.bat",
    visual_studio.default_resolver,
    ["VC/Auxiliary/Build/vcvarsall.bat"],
))

# Directory names and vcvarsall.bat arguments of the MSVC host/target layout.
MSVC_ARCH_NAMES = {
    Architecture.ARM64: "arm64",
    Architecture.IA32: "x86",
    Architecture.X64: "x64",
}


def _msvc_host():
    try:
        return MSVC_ARCH_NAMES.get(Architecture.current(), "x64")
    except UnsupportedTarget:
        return "x64"


def vcvarsall_arguments(target_architecture):
    """Arguments selecting the host/target pair when sourcing vcvarsall.bat."""
    host = _msvc_host()
    target = MSVC_ARCH_NAMES[target_architecture]
    return [target] if host == target else [f"{host}_{target}"]


def _msvc_tool(name, executable_name, target_architecture):
    host_dir = f"Host{_msvc_host()}"
    target_dir = MSVC_ARCH_NAMES[target_architecture]
    return Tool(name, RelativeToolResolver(
        name,
        visual_studio.default_resolver,
        [f"VC/Tools/MSVC/*/bin/{host_dir}/{target_dir}/{executable_name}"],
    ))


MSVC_TOOLCHAINS = {
    architecture: {
        "compiler": _msvc_tool(f"MSVC cl ({name})", "cl.exe", architecture),
        "linker": _msvc_tool(f"MSVC link ({name})", "link.exe", architecture),
        "archiver": _msvc_tool(f"MSVC lib ({name})", "lib.exe", architecture),
    }
    for architecture, name in MSVC_ARCH_NAMES.items()
}

# Tools reported by the list-tools command, per platform family.
KNOWN_TOOLS = {
    "Build tools": [meson, ninja],
    "Host toolchain": [clang, gcc, lld, gnu_linker, llvm_ar, gnu_archiver, llvm_strip, gnu_strip],
    "Linux cross toolchains": [
        tool for toolchain in GNU_CROSS_TOOLCHAINS.values() for tool in toolchain.values()
    ],
    "Android NDK": [android_ndk, android_ndk_clang, android_ndk_lld, android_ndk_llvm_ar, android_ndk_llvm_strip],
    "Xcode": [apple_clang, apple_linker, apple_archiver, apple_strip, macosx_sdk, iphoneos_sdk, iphonesimulator_sdk],
    "Visual Studio": [visual_studio, vcvarsall] + [
        tool for toolchain in MSVC_TOOLCHAINS.values() for tool in toolchain.values()
    ],
}
