import platform
import sys
from enum import Enum

from .errors import UnsupportedTarget


class OS(Enum):
    ANDROID = "android"
    FUCHSIA = "fuchsia"
    IOS = "ios"
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"

    def __str__(self):
        return self.value

    @classmethod
    def current(cls):
        if sys.platform.startswith("linux"):
            return cls.LINUX
        if sys.platform == "darwin":
            return cls.MACOS
        if sys.platform in ("win32", "cygwin"):
            return cls.WINDOWS
        raise UnsupportedTarget(sys.platform, platform.machine(), reason="unknown build host OS")

    def dylib_file_name(self, name):
        if self in (OS.MACOS, OS.IOS):
            return f"lib{name}.dylib"
        if self == OS.WINDOWS:
            return f"{name}.dll"
        return f"lib{name}.so"

    def static_lib_file_name(self, name):
        # Meson names static libraries lib<name>.a on every platform.
        return f"lib{name}.a"

    def library_file_name(self, name, link_mode):
        if link_mode == LinkMode.STATIC:
            return self.static_lib_file_name(name)
        return self.dylib_file_name(name)

    def executable_file_name(self, name):
        if self == OS.WINDOWS:
            return f"{name}.exe"
        return name


class Architecture(Enum):
    ARM = "arm"
    ARM64 = "arm64"
    IA32 = "ia32"
    RISCV32 = "riscv32"
    RISCV64 = "riscv64"
    X64 = "x64"

    def __str__(self):
        return self.value

    @classmethod
    def current(cls):
        machine = platform.machine().lower()
        if machine in ("x86_64", "amd64"):
            return cls.X64
        if machine in ("i386", "i486", "i586", "i686", "x86"):
            return cls.IA32
        if machine in ("aarch64", "arm64"):
            return cls.ARM64
        if machine.startswith("arm"):
            return cls.ARM
        if machine == "riscv64":
            return cls.RISCV64
        if machine == "riscv32":
            return cls.RISCV32
        raise UnsupportedTarget(sys.platform, machine, reason="unknown build host architecture")


class IOSSdk(Enum):
    IPHONE_OS = "iphoneos"
    IPHONE_SIMULATOR = "iphonesimulator"

    def __str__(self):
        return self.value


class Target(Enum):
    """The closed set of (architecture, OS) pairs a build can target."""

    ANDROID_ARM = (Architecture.ARM, OS.ANDROID)
    ANDROID_ARM64 = (Architecture.ARM64, OS.ANDROID)
    ANDROID_IA32 = (Architecture.IA32, OS.ANDROID)
    ANDROID_X64 = (Architecture.X64, OS.ANDROID)
    ANDROID_RISCV64 = (Architecture.RISCV64, OS.ANDROID)
    FUCHSIA_ARM64 = (Architecture.ARM64, OS.FUCHSIA)
    FUCHSIA_X64 = (Architecture.X64, OS.FUCHSIA)
    IOS_ARM = (Architecture.ARM, OS.IOS)
    IOS_ARM64 = (Architecture.ARM64, OS.IOS)
    IOS_X64 = (Architecture.X64, OS.IOS)
    LINUX_ARM = (Architecture.ARM, OS.LINUX)
    LINUX_ARM64 = (Architecture.ARM64, OS.LINUX)
    LINUX_IA32 = (Architecture.IA32, OS.LINUX)
    LINUX_RISCV32 = (Architecture.RISCV32, OS.LINUX)
    LINUX_RISCV64 = (Architecture.RISCV64, OS.LINUX)
    LINUX_X64 = (Architecture.X64, OS.LINUX)
    MACOS_ARM64 = (Architecture.ARM64, OS.MACOS)
    MACOS_X64 = (Architecture.X64, OS.MACOS)
    WINDOWS_ARM64 = (Architecture.ARM64, OS.WINDOWS)
    WINDOWS_IA32 = (Architecture.IA32, OS.WINDOWS)
    WINDOWS_X64 = (Architecture.X64, OS.WINDOWS)

    @property
    def architecture(self):
        return self.value[0]

    @property
    def os(self):
        return self.value[1]

    def __str__(self):
        return f"{self.os}_{self.architecture}"

    @classmethod
    def from_architecture_and_os(cls, architecture, os_):
        try:
            return cls((architecture, os_))
        except ValueError:
            raise UnsupportedTarget(str(os_), str(architecture)) from None

    @classmethod
    def current(cls):
        return cls.from_architecture_and_os(Architecture.current(), OS.current())

    @classmethod
    def for_os(cls, os_):
        return [target for target in cls if target.os == os_]


class LinkMode(Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"

    def __str__(self):
        return self.value

    @property
    def library_type(self):
        """Value of Meson's ``default_library`` option for this link mode."""
        return {LinkMode.STATIC: "static", LinkMode.DYNAMIC: "shared"}[self]

    @property
    def meson_target_type(self):
        return {LinkMode.STATIC: "static_library", LinkMode.DYNAMIC: "shared_library"}[self]


class LinkModePreference(Enum):
    DYNAMIC = "dynamic"
    STATIC = "static"
    PREFER_DYNAMIC = "prefer-dynamic"
    PREFER_STATIC = "prefer-static"

    def __str__(self):
        return self.value

    @property
    def link_mode(self):
        if self in (LinkModePreference.DYNAMIC, LinkModePreference.PREFER_DYNAMIC):
            return LinkMode.DYNAMIC
        return LinkMode.STATIC


class BuildMode(Enum):
    DEBUG = "debug"
    RELEASE = "release"

    def __str__(self):
        return self.value
