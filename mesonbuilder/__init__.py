"""Build Meson projects for native targets with discovered toolchains."""

from .build_config import BuildConfig, CCompilerConfig
from .builder import MesonBuilder, RunMesonBuilder
from .output import BuildOutput, CodeAsset
from .target import OS, Architecture, BuildMode, IOSSdk, LinkMode, LinkModePreference, Target
