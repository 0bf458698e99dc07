import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from sdlc_automation.commands import ado, jira, org, settings
from sdlc_automation.config.config import load_environment
from sdlc_automation.config.user_settings import default_settings_dir
from sdlc_automation.context import CommandContext
from sdlc_automation.errors import ConfigurationError, SdlcError

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False, logs_dir: Optional[str] = None) -> str:
    # Create logs directory if it doesn't exist
    logs_dir = logs_dir or os.path.join(str(default_settings_dir()), "logs")
    os.makedirs(logs_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(logs_dir, f"sdlc_{timestamp}.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    # Console handler stays quiet unless --verbose; the console writer covers normal output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # File handler with rotation (10 MB per file, 5 backup files)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # The SDK transports are chatty at DEBUG
    for name in ("msrest", "urllib3", "azure"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='sdlc', description='SDLC automation for Azure DevOps and JIRA')
    parser.add_argument('--verbose', action='store_true', help='Log debug output to the console')
    subparsers = parser.add_subparsers(dest='command', required=True)
    ado.register(subparsers)
    jira.register(subparsers)
    org.register(subparsers)
    settings.register(subparsers)
    return parser


async def run(args: argparse.Namespace, context: CommandContext) -> int:
    """Run the selected command handler and turn failures into an exit code."""
    logger = logging.getLogger(__name__)
    try:
        return await args.handler(args, context)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        context.console.error(str(e))
        context.console.info("Check your .env file, environment variables or 'sdlc org' settings")
        return e.exit_code
    except SdlcError as e:
        logger.error(f"Command failed: {str(e)}")
        context.console.error(str(e))
        return e.exit_code
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        context.console.error(f"Unexpected error: {str(e)}")
        return 1


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    load_environment()

    context = CommandContext()
    log_file = setup_logging(verbose=args.verbose or context.settings.verbose_logging)

    logger = logging.getLogger(__name__)
    logger.info(f"Running 'sdlc {args.command}'")
    logger.info(f"Logs will be saved to: {log_file}")

    sys.exit(asyncio.run(run(args, context)))


if __name__ == "__main__":
    main()
