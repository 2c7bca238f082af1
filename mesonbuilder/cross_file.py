"""Meson cross file generation.

The cross file tells Meson which machine the build produces code for (its
"host machine"), which binaries to use and which arguments to pass to them.
The tables below map targets to Meson machine names and to the clang target
triples of the Android NDK and Xcode toolchains.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional, Tuple

from . import native_toolchain as tc
from .cli_logger import logger
from .errors import SerializationInvariantViolation, ToolNotFound, UnsupportedTarget
from .target import OS, Architecture, IOSSdk, LinkMode, Target

CROSS_FILE_NAME = "cross.ini"

# -------------------- Target mapping tables --------------------

SYSTEMS = {
    OS.ANDROID: "android",
    OS.IOS: "darwin",
    OS.MACOS: "darwin",
    OS.LINUX: "linux",
    OS.WINDOWS: "windows",
}

KERNELS = {
    OS.ANDROID: "linux",
    OS.LINUX: "linux",
    OS.IOS: "xnu",
    OS.MACOS: "xnu",
    OS.WINDOWS: "nt",
}

IOS_SUBSYSTEMS = {
    IOSSdk.IPHONE_OS: "ios",
    IOSSdk.IPHONE_SIMULATOR: "ios-simulator",
}

CPU_FAMILIES = {
    Architecture.ARM: "arm",
    Architecture.ARM64: "aarch64",
    Architecture.IA32: "x86",
    Architecture.X64: "x86_64",
    Architecture.RISCV32: "riscv32",
    Architecture.RISCV64: "riscv64",
}

# Every OS we support is little endian on every architecture we support.
ENDIAN = "little"

# Concatenated with the NDK API level, e.g. aarch64-linux-android21.
ANDROID_NDK_CLANG_TARGETS = {
    Target.ANDROID_ARM: "armv7a-linux-androideabi",
    Target.ANDROID_ARM64: "aarch64-linux-android",
    Target.ANDROID_IA32: "i686-linux-android",
    Target.ANDROID_X64: "x86_64-linux-android",
}

APPLE_CLANG_MACOS_TARGETS = {
    Target.MACOS_ARM64: "arm64-apple-darwin",
    Target.MACOS_X64: "x86_64-apple-darwin",
}

APPLE_CLANG_IOS_TARGETS = {
    Target.IOS_ARM64: {
        IOSSdk.IPHONE_OS: "arm64-apple-ios",
        IOSSdk.IPHONE_SIMULATOR: "arm64-apple-ios-simulator",
    },
    Target.IOS_X64: {
        IOSSdk.IPHONE_SIMULATOR: "x86_64-apple-ios-simulator",
    },
}

IOS_SDKS = {
    IOSSdk.IPHONE_OS: tc.iphoneos_sdk,
    IOSSdk.IPHONE_SIMULATOR: tc.iphonesimulator_sdk,
}

OBJC_COMPILERS = frozenset([tc.clang, tc.apple_clang, tc.gcc])


def _unsupported(target, ios_sdk=None, reason=None):
    return UnsupportedTarget(str(target.os), str(target.architecture), ios_sdk and str(ios_sdk), reason)


def _require_ios_sdk(target, ios_sdk):
    if ios_sdk is None:
        raise _unsupported(target, reason="an iOS SDK (iphoneos or iphonesimulator) is required")
    return ios_sdk


def clang_target(target, ios_sdk=None, android_ndk_api=None):
    """The ``--target`` triple for target, or None for native toolchains."""
    if target.os == OS.MACOS:
        triple = APPLE_CLANG_MACOS_TARGETS.get(target)
        if triple is None:
            raise _unsupported(target)
        return triple
    if target.os == OS.IOS:
        triple = APPLE_CLANG_IOS_TARGETS.get(target, {}).get(_require_ios_sdk(target, ios_sdk))
        if triple is None:
            raise _unsupported(target, ios_sdk)
        return triple
    if target.os == OS.ANDROID:
        prefix = ANDROID_NDK_CLANG_TARGETS.get(target)
        if prefix is None:
            raise _unsupported(target)
        if android_ndk_api is None:
            raise _unsupported(target, reason="an Android NDK API level is required")
        return f"{prefix}{android_ndk_api}"
    return None


def resolve_sdk_root(target, ios_sdk=None):
    """Root of the Apple SDK to compile against, or None for other OSes."""
    if target.os == OS.MACOS:
        sdk = tc.macosx_sdk
    elif target.os == OS.IOS:
        sdk = IOS_SDKS[_require_ios_sdk(target, ios_sdk)]
    else:
        return None

    instances = [i for i in sdk.default_resolver.resolve() if i.tool == sdk]
    if not instances:
        raise ToolNotFound(sdk.name, target, hint="Install Xcode and run 'xcode-select --install'.")
    logger.info(f"  - Using {sdk.name} at {instances[0].path}")
    return instances[0].path


# -------------------- Cross file sections --------------------

@dataclass(frozen=True)
class MachineSpec:
    system: Optional[str] = None
    subsystem: Optional[str] = None
    kernel: Optional[str] = None
    cpu_family: Optional[str] = None
    cpu: Optional[str] = None
    endian: Optional[str] = None

    def to_properties(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class BinariesSpec:
    c: Optional[str] = None
    c_ld: Optional[str] = None
    cpp: Optional[str] = None
    cpp_ld: Optional[str] = None
    objc: Optional[str] = None
    objc_ld: Optional[str] = None
    ar: Optional[str] = None
    strip: Optional[str] = None

    def to_properties(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class BuiltInOptionsSpec:
    c_args: Optional[Tuple[str, ...]] = None
    c_link_args: Optional[Tuple[str, ...]] = None
    cpp_args: Optional[Tuple[str, ...]] = None
    cpp_link_args: Optional[Tuple[str, ...]] = None
    objc_args: Optional[Tuple[str, ...]] = None
    objc_link_args: Optional[Tuple[str, ...]] = None

    def to_properties(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PropertiesSpec:
    needs_exe_wrapper: Optional[bool] = None

    def to_properties(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class CrossSpec:
    host_machine: MachineSpec = MachineSpec()
    binaries: BinariesSpec = BinariesSpec()
    built_in_options: BuiltInOptionsSpec = BuiltInOptionsSpec()
    properties: PropertiesSpec = PropertiesSpec()

    def sections(self):
        return [
            ("host_machine", self.host_machine.to_properties()),
            ("binaries", self.binaries.to_properties()),
            ("built-in options", self.built_in_options.to_properties()),
            ("properties", self.properties.to_properties()),
        ]

    def to_ini(self):
        return render_ini(self.sections())


# -------------------- Serialization --------------------

def _render_string(value):
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render_value(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return _render_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} value in a Meson machine file: {value!r}")


def render_ini(sections):
    """
    Renders sections in Meson's machine file syntax.

    Args:
        sections: Ordered (name, properties) pairs; properties is an ordered
            mapping of key to value, where None means "unset".

    Returns:
        The document. Unset keys and sections without any set key are left out.
    """
    rendered = []
    for name, properties in sections:
        lines = [f"{key} = {render_value(value)}" for key, value in properties.items() if value is not None]
        if lines:
            rendered.append("\n".join([f"[{name}]"] + lines))
    return "\n\n".join(rendered)


# -------------------- Building --------------------

def host_machine_spec(target, ios_sdk=None):
    """Meson's description of the machine the build produces code for."""
    system = SYSTEMS.get(target.os)
    kernel = KERNELS.get(target.os)
    cpu_family = CPU_FAMILIES.get(target.architecture)
    if system is None or kernel is None or cpu_family is None:
        raise _unsupported(target, ios_sdk)

    if target.os == OS.IOS:
        subsystem = IOS_SUBSYSTEMS[_require_ios_sdk(target, ios_sdk)]
    elif target.os == OS.MACOS:
        subsystem = "macos"
    else:
        subsystem = system

    return MachineSpec(
        system=system,
        subsystem=subsystem,
        kernel=kernel,
        cpu_family=cpu_family,
        cpu=cpu_family,
        endian=ENDIAN,
    )


def validate_target(target, ios_sdk=None, android_ndk_api=None):
    """Raise UnsupportedTarget unless every mapping table covers the target."""
    host_machine_spec(target, ios_sdk)
    clang_target(target, ios_sdk, android_ndk_api)


def compiler_supports_objc(compiler):
    return compiler.tool in OBJC_COMPILERS


_REQUIRED_KEYS = [
    ("host_machine", "system"),
    ("host_machine", "kernel"),
    ("host_machine", "cpu_family"),
    ("host_machine", "endian"),
    ("binaries", "c"),
    ("binaries", "ar"),
]


def check_required(cross_spec):
    sections = dict(cross_spec.sections())
    for section, key in _REQUIRED_KEYS:
        if sections[section][key] is None:
            raise SerializationInvariantViolation(section, key)


def build_cross_spec(
    target,
    link_mode,
    compiler,
    linker,
    archiver,
    strip=None,
    ios_sdk=None,
    android_ndk_api=None,
    host=None,
    sdk_root_resolver=resolve_sdk_root,
):
    """
    Builds the cross file contents for a target from the resolved toolchain.

    C and C++ share the compiler binary and arguments. Objective-C is only
    configured for compilers known to support it.

    Raises:
        UnsupportedTarget: If the target is missing from the mapping tables.
        ToolNotFound: If the Apple SDK of the target cannot be located.
    """
    host = host or Target.current()
    host_machine = host_machine_spec(target, ios_sdk)
    triple = clang_target(target, ios_sdk, android_ndk_api)
    sysroot = sdk_root_resolver(target, ios_sdk)

    common_args = []
    if triple is not None:
        common_args.append(f"--target={triple}")
    if sysroot is not None:
        common_args.extend(["-isysroot", sysroot])
    c_args = tuple(common_args)

    link_args = list(common_args)
    if target.os == OS.ANDROID and link_mode == LinkMode.DYNAMIC:
        # A shared object must not link the startup code of an executable.
        link_args.append("-nostartfiles")
    c_link_args = tuple(link_args)

    # GCC drivers only take linker names through -fuse-ld.
    linker_path = None if compiler.tool in tc.GCC_FAMILY else linker.path
    objc = compiler_supports_objc(compiler)

    cross_spec = CrossSpec(
        host_machine=host_machine,
        binaries=BinariesSpec(
            c=compiler.path,
            c_ld=linker_path,
            cpp=compiler.path,
            cpp_ld=linker_path,
            objc=compiler.path if objc else None,
            objc_ld=linker_path if objc else None,
            ar=archiver.path,
            strip=strip.path if strip is not None else None,
        ),
        built_in_options=BuiltInOptionsSpec(
            c_args=c_args,
            c_link_args=c_link_args,
            cpp_args=c_args,
            cpp_link_args=c_link_args,
            objc_args=c_args if objc else None,
            objc_link_args=c_link_args if objc else None,
        ),
        properties=PropertiesSpec(needs_exe_wrapper=target != host),
    )
    check_required(cross_spec)
    return cross_spec


def write_cross_file(cross_spec, output_directory):
    cross_file_path = os.path.join(output_directory, CROSS_FILE_NAME)
    with open(cross_file_path, "w") as f:
        f.write(cross_spec.to_ini())
    logger.info(f"  - Wrote cross file to {cross_file_path}")
    return cross_file_path
