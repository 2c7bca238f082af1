"""Records of the artifacts a build produced and the files it depends on."""

import json
import os
from dataclasses import dataclass, field
from typing import List

from .cli_logger import logger
from .target import OS, Architecture, LinkMode

BUILD_OUTPUT_FILE = "build_output.json"


@dataclass(frozen=True)
class CodeAsset:
    package: str
    name: str
    link_mode: LinkMode
    os: OS
    architecture: Architecture
    file: str

    @property
    def id(self):
        return f"package:{self.package}/{self.name}"

    def to_json(self):
        return {
            "id": self.id,
            "link_mode": self.link_mode.value,
            "os": self.os.value,
            "architecture": self.architecture.value,
            "file": self.file,
        }


@dataclass
class BuildOutput:
    assets: List[CodeAsset] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)

    def add_asset(self, asset):
        self.assets.append(asset)

    def add_dependencies(self, paths):
        # First occurrence wins; dict keys keep insertion order.
        self.dependencies = list(dict.fromkeys([*self.dependencies, *paths]))

    def to_json(self):
        return {
            "assets": [asset.to_json() for asset in self.assets],
            "dependencies": list(self.dependencies),
        }

    def write(self, directory):
        output_path = os.path.join(directory, BUILD_OUTPUT_FILE)
        with open(output_path, "w") as f:
            json.dump(self.to_json(), f, indent=2)
        logger.info(f"  - Wrote build output to {output_path}")
        return output_path
