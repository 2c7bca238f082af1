import fnmatch
import os
import re

SUBPROJECTS_DIR = "subprojects"


def _glob_to_regex(pattern):
    """Translate a glob with ``**`` support into a compiled regex.

    ``**/`` matches zero or more directories, ``*`` and ``?`` stay within a
    single path segment.
    """
    pattern = pattern.replace(os.sep, "/")
    regex = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            regex += "(?:.*/)?"
            i += 3
        elif pattern.startswith("**", i):
            regex += ".*"
            i += 2
        elif pattern[i] == "*":
            regex += "[^/]*"
            i += 1
        elif pattern[i] == "?":
            regex += "[^/]"
            i += 1
        elif pattern[i] == "[":
            end = pattern.find("]", i)
            if end == -1:
                regex += re.escape(pattern[i])
                i += 1
            else:
                regex += fnmatch.translate(pattern[i:end + 1])[4:-3]
                i = end + 1
        else:
            regex += re.escape(pattern[i])
            i += 1
    return re.compile(f"^{regex}$")


def matches_any(relative_path, patterns):
    relative_path = relative_path.replace(os.sep, "/")
    return any(_glob_to_regex(pattern).match(relative_path) for pattern in patterns)


def collect_project_files(project_dir, exclude=(), subprojects=()):
    """
    Collects all files of a Meson project which the build depends on.

    Args:
        project_dir (str): The Meson project directory.
        exclude (list): Glob patterns, relative to project_dir, of files to leave out.
        subprojects (list): Glob patterns, relative to project_dir/subprojects,
            of files to keep. Everything else in subprojects/ is left out, since
            Meson writes there when the wrap dependency system is used.

    Returns:
        A sorted list of absolute file paths.
    """
    project_dir = os.path.abspath(project_dir)
    files = []
    for root, _, names in os.walk(project_dir):
        for name in names:
            path = os.path.join(root, name)
            relative_path = os.path.relpath(path, project_dir).replace(os.sep, "/")

            if matches_any(relative_path, exclude):
                continue

            if relative_path.startswith(f"{SUBPROJECTS_DIR}/"):
                in_subprojects = relative_path[len(SUBPROJECTS_DIR) + 1:]
                if not matches_any(in_subprojects, subprojects):
                    continue

            files.append(path)
    return sorted(files)
