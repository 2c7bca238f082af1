"""Tool identities, located tool instances and the resolver interface.

A :class:`Tool` names an external program (Meson, Ninja, Clang, ...) and
carries the default resolver used to discover it. Resolvers produce
:class:`ToolInstance` values: the tool, where its executable lives, and its
version when known.
"""

import re
from dataclasses import dataclass, field, replace
from typing import List, Optional

from packaging.version import InvalidVersion, Version

from ...cli_logger import logger
from ..command_executor import run_shell_command


@dataclass(frozen=True)
class Tool:
    name: str
    default_resolver: Optional["ToolResolver"] = field(default=None, compare=False, repr=False)

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class ToolInstance:
    tool: Tool
    path: str
    version: Optional[Version] = None

    def with_version(self, version):
        return replace(self, version=version)

    def __str__(self):
        if self.version is None:
            return f"{self.tool.name} ({self.path})"
        return f"{self.tool.name} {self.version} ({self.path})"


def sort_instances(instances):
    """Deduplicate instances and sort them by descending version.

    Instances without a version sort last. The sort is stable, so for equal
    versions the instance found first keeps its place.
    """
    unique = []
    seen = set()
    for instance in instances:
        key = (instance.tool, instance.path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(instance)

    with_version = [i for i in unique if i.version is not None]
    without_version = [i for i in unique if i.version is None]
    with_version.sort(key=lambda i: i.version, reverse=True)
    return with_version + without_version


class ToolResolver:
    """Produces zero or more instances of a tool. Never raises for "not found"."""

    def resolve(self) -> List[ToolInstance]:
        raise NotImplementedError


class ToolResolvers(ToolResolver):
    """Unions the results of several resolvers, in priority order."""

    def __init__(self, resolvers):
        self.resolvers = list(resolvers)

    def resolve(self):
        instances = []
        for resolver in self.resolvers:
            instances.extend(resolver.resolve())
        return sort_instances(instances)


_VERSION_REGEX = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(text):
    """Extract the first ``major.minor[.patch]`` token from tool output."""
    match = _VERSION_REGEX.search(text or "")
    if not match:
        return None
    major, minor, patch = match.groups()
    try:
        return Version(f"{major}.{minor}.{patch or 0}")
    except InvalidVersion:
        return None


class CliVersionResolver(ToolResolver):
    """Fills in the version of each wrapped instance by running the tool."""

    def __init__(self, wrapped_resolver, arguments=("--version",), expected_exit_code=0):
        self.wrapped_resolver = wrapped_resolver
        self.arguments = list(arguments)
        self.expected_exit_code = expected_exit_code

    def resolve(self):
        instances = []
        for instance in self.wrapped_resolver.resolve():
            if instance.version is not None:
                instances.append(instance)
                continue
            instances.append(self.lookup_version(instance))
        return sort_instances(instances)

    def lookup_version(self, instance):
        stdout, stderr, returncode = run_shell_command([instance.path, *self.arguments])
        if returncode != self.expected_exit_code:
            logger.warning(
                f"  - Could not determine version of {instance.tool.name} at {instance.path} "
                f"(Exit Code: {returncode})."
            )
            return instance
        version = parse_version(stdout) or parse_version(stderr)
        if version is None:
            logger.warning(f"  - Could not parse version of {instance.tool.name} from: {stdout.strip()}")
            return instance
        return instance.with_version(version)
