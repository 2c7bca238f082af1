import subprocess
from ..cli_logger import logger
from ..errors import ExternalProcessFailed

def run_shell_command(command, env=None, input_data=None, cwd=None):
    """
    Executes a command and captures its output.

    Args:
        command (list): The command to execute as a list of strings.
        env (dict, optional): A dictionary of environment variables. The
            current process environment is inherited when omitted.
        input_data (str, optional): Data to be passed to the command's stdin.
        cwd (str, optional): The working directory for the command.

    Returns:
        A tuple (stdout, stderr, return_code). A command that cannot be
        started reports return code -1 with the error as stderr.
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            input=input_data,
            check=False,
            cwd=cwd
        )
        return result.stdout, result.stderr, result.returncode

    except FileNotFoundError as e:
        logger.error(f"Command not found: {e.filename}")
        return "", str(e), -1
    except OSError as e:
        logger.error(f"Could not run {command[0]}: {e}")
        return "", str(e), -1


def run_checked(phase, command, env=None, cwd=None):
    """Run a command and raise ExternalProcessFailed on a non-zero exit code.

    Returns the captured stdout.
    """
    logger.info(f"  - Running {phase}...")
    logger.command(command, cwd=cwd)
    stdout, stderr, returncode = run_shell_command(command, env=env, cwd=cwd)
    if returncode != 0:
        logger.error(f"{phase} failed (Exit Code: {returncode}):")
        logger.process_output(stdout, stderr)
        raise ExternalProcessFailed(phase, command, returncode, stdout, stderr)
    return stdout
