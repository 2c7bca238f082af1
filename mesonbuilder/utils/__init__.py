from .command_executor import run_shell_command, run_checked
from .env_from_script import environment_from_batch_file
from .file_manager import collect_project_files
