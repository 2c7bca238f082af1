import toml
import os
from .cli_logger import logger

CONFIG_FILE = "mesonbuilder.toml"

def config_path(path="."):
    return os.path.join(path, CONFIG_FILE)

def load_config(path="."):
    """Load mesonbuilder.toml from path. Missing or unreadable files give {}."""
    file_path = config_path(path)
    if not os.path.exists(file_path):
        logger.debug(f"No configuration at {file_path}")
        return {}

    logger.debug(f"Loading configuration from {file_path}")
    try:
        with open(file_path, "r") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        logger.error(f"Malformed TOML in {file_path}: {e}")
        logger.info("Fix the syntax error and run the command again.")
    except IOError as e:
        logger.error(f"Cannot read {file_path}: {e}")
    return {}

def save_config(config, path="."):
    file_path = config_path(path)
    try:
        with open(file_path, "w") as f:
            toml.dump(config, f)
    except IOError as e:
        logger.error(f"Cannot write {file_path}: {e}")
        return False
    logger.debug(f"Saved configuration to {file_path}")
    return True

def get_meson_options(conf):
    """Return the [meson.options] table as an insertion-ordered dict of strings."""
    options = conf.get("meson", {}).get("options", {})
    return {str(key): _option_value(value) for key, value in options.items()}

def _option_value(value):
    # Meson spells booleans in lowercase.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_option_value(item) for item in value)
    return str(value)
