import functools
import click
import sys
from .cli_logger import logger
from .errors import MesonBuilderError

def handle_exceptions(func):
    """A decorator to handle common exceptions for CLI commands.

    Failures are logged and turn into exit status 1.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            sys.exit(1)
        except MesonBuilderError as e:
            logger.error(e.message)
            if e.hint:
                logger.info(f"Hint: {e.hint}")
            for key, value in e.context.items():
                if value:
                    logger.debug(f"  {key}: {value}")
            sys.exit(1)
        except click.ClickException as e:
            logger.error(f"CLI Error: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
