"""Errors raised while resolving toolchains and driving Meson builds.

Every error carries a hint and a context mapping so that callers can render an
actionable message without re-running the build.
"""


class MesonBuilderError(Exception):
    """Base error class that carries an optional hint and context."""

    def __init__(self, message, *, hint=None, context=None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self):
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)

    def to_dict(self):
        payload = {
            "error": type(self).__name__,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ToolNotFound(MesonBuilderError):
    """A required external tool could not be located by any resolver."""

    def __init__(self, tool_name, target=None, hint=None):
        message = f"Tool {tool_name} not found."
        if target is not None:
            message = f"Tool {tool_name} not found for target {target}."
        super().__init__(
            message,
            hint=hint or f"Install {tool_name} or point mesonbuilder.toml at it.",
            context={"tool": tool_name, "target": target},
        )
        self.tool_name = tool_name
        self.target = target


class UnsupportedVersion(MesonBuilderError):
    """A resolved tool's version is outside of the supported range."""

    def __init__(self, tool_name, version, allowed_range):
        super().__init__(
            f"{tool_name} version {version} is not in the range of supported "
            f"versions ({allowed_range}).",
            hint=f"Install a {tool_name} version matching {allowed_range}.",
            context={"tool": tool_name, "version": version, "allowed": allowed_range},
        )
        self.tool_name = tool_name
        self.version = version
        self.allowed_range = allowed_range


class UnsupportedTarget(MesonBuilderError):
    """No mapping table entry exists for the requested target."""

    def __init__(self, os_name, architecture, sdk=None, reason=None):
        description = f"{os_name}/{architecture}"
        if sdk is not None:
            description += f" ({sdk})"
        message = f"Unsupported target {description}."
        if reason:
            message = f"Unsupported target {description}: {reason}"
        super().__init__(
            message,
            context={"os": os_name, "architecture": architecture, "sdk": sdk},
        )
        self.os_name = os_name
        self.architecture = architecture
        self.sdk = sdk


class ExternalProcessFailed(MesonBuilderError):
    """An external process (configure, compile, environment script) failed."""

    def __init__(self, phase, command, returncode, stdout="", stderr=""):
        super().__init__(
            f"{phase} failed (Exit Code: {returncode}): {' '.join(command)}",
            context={"stdout": stdout, "stderr": stderr},
        )
        self.phase = phase
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class SerializationInvariantViolation(MesonBuilderError):
    """A descriptor field required for the target was never populated.

    This indicates a gap in the target mapping tables and is a defect, not a
    runtime condition.
    """

    def __init__(self, section, key):
        super().__init__(
            f"Cross file section [{section}] is missing required key '{key}'.",
            context={"section": section, "key": key},
        )
        self.section = section
        self.key = key
