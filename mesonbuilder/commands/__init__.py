from .build import build
from .clean import clean
from .config import config
from .doctor import doctor
from .list_tools import list_tools
from .log import log
from .version import version

__all__ = ["build", "clean", "config", "doctor", "list_tools", "log", "version"]
