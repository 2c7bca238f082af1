import datetime
import os
import sys
import traceback
from colorama import Fore, Style, init

init(autoreset=True)

LOG_DIR = os.environ.get(
    "MESONBUILDER_LOG_DIR",
    os.path.join(os.path.expanduser("~"), ".mesonbuilder", "logs"),
)
os.makedirs(LOG_DIR, exist_ok=True)

# Console colour and symbol per level. Every level goes to the log file;
# DEBUG only reaches the console when MESONBUILDER_DEBUG is set.
LEVEL_STYLES = {
    "INFO": (Fore.CYAN, ""),
    "SUCCESS": (Fore.GREEN, "✓ "),
    "WARNING": (Fore.YELLOW, "⚠ "),
    "ERROR": (Fore.RED, "✖ "),
    "DEBUG": (Fore.WHITE + Style.DIM, ""),
    "COMMAND": (Fore.MAGENTA, "$ "),
    "TRACEBACK": (Fore.RED, ">> "),
}

ERROR_LEVELS = {"WARNING", "ERROR", "TRACEBACK"}


class Logger:
    def __init__(self, log_dir=LOG_DIR, stdout=None, stderr=None):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.log_file = os.path.join(
            log_dir,
            f"mesonbuilder_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        self.show_debug = bool(os.environ.get("MESONBUILDER_DEBUG"))

    def _write_file(self, line):
        with open(self.log_file, "a") as f:
            f.write(line + "\n")

    def _log(self, level, message, indent=0, show_timestamp=True):
        color, symbol = LEVEL_STYLES[level]
        prefix = " " * indent
        timestamp = datetime.datetime.now().strftime("%H:%M:%S")
        self._write_file(f"[{timestamp}] [{level}] {prefix}{message}")

        if level == "DEBUG" and not self.show_debug:
            return
        stream = self.stderr if level in ERROR_LEVELS else self.stdout
        head = f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} " if show_timestamp else ""
        print(f"{head}{prefix}{color}{Style.BRIGHT}{symbol}{Style.NORMAL}{message}{Style.RESET_ALL}", file=stream)

    def info(self, message):
        self._log("INFO", message)

    def step_info(self, message, indent=0):
        self._log("INFO", message, indent=indent, show_timestamp=False)

    def success(self, message):
        self._log("SUCCESS", message)

    def warning(self, message):
        self._log("WARNING", message)

    def error(self, message):
        self._log("ERROR", message)

    def debug(self, message):
        self._log("DEBUG", message)

    def command(self, command, cwd=None):
        """Log an external command line about to run."""
        where = f" (in {cwd})" if cwd else ""
        self._log("COMMAND", f"{' '.join(str(part) for part in command)}{where}")

    def process_output(self, stdout, stderr):
        """Log captured stdout/stderr of a finished process, skipping empty streams."""
        if stdout:
            self.error(f"Stdout:\n{stdout.rstrip()}")
        if stderr:
            self.error(f"Stderr:\n{stderr.rstrip()}")

    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        for line in traceback.format_exception(exc_type, exc_value, exc_traceback):
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", sub_line)


logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
