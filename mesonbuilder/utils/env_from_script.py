from ..cli_logger import logger
from .command_executor import run_checked

# No spaces: cmd.exe echoes quoted arguments with their quotes.
_ENV_MARKER = "__MESONBUILDER_ENV__"


def parse_set_output(output):
    """Parse the ``KEY=value`` lines printed by ``set`` into a dict.

    Lines before the marker line (if present) are ignored, so banner output of
    the environment script does not leak into the result.
    """
    lines = output.splitlines()
    markers = [i for i, line in enumerate(lines) if line.strip().strip('"') == _ENV_MARKER]
    if markers:
        lines = lines[markers[-1] + 1:]

    environment = {}
    for line in lines:
        key, separator, value = line.partition("=")
        if not separator or not key:
            continue
        environment[key.strip()] = value.rstrip("\r")
    return environment


def environment_from_batch_file(batch_file, arguments=()):
    """Run a toolchain environment script and capture the environment it sets.

    Used for MSVC's vcvarsall.bat, which has to be sourced by cmd.exe before
    cl.exe, link.exe and lib.exe can be invoked.
    """
    logger.info(f"  - Capturing toolchain environment from {batch_file}")
    command = [
        "cmd", "/c",
        "call", str(batch_file), *arguments,
        "&&", "echo", _ENV_MARKER,
        "&&", "set",
    ]
    stdout = run_checked("toolchain environment script", command)
    environment = parse_set_output(stdout)
    logger.info(f"  - Captured {len(environment)} environment variables.")
    return environment
