#!/usr/bin/env python3
"""Main entry point for the langclient command line."""

import sys

from loguru import logger

from langclient.utils.console import console


def main(argv=None):
    """Main entry point for the CLI application."""

    from langclient.cli.commands import (
        handle_lint_command,
        handle_probe_command,
        handle_servers_command,
    )
    from langclient.cli.parser import setup_argument_parser
    from langclient.config.settings import get_config
    from langclient.utils.logging import setup_logging

    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if args.cli_command is None:
        parser.print_help()
        return

    try:
        settings = get_config(config_file=getattr(args, "config", None))
        setup_logging((args.log_level or settings.logging.level).upper())

        if args.cli_command == "probe":
            handle_probe_command(args)
        elif args.cli_command == "lint":
            handle_lint_command(args)
        elif args.cli_command == "servers":
            handle_servers_command(args)
        else:
            logger.error(f"Unknown command: {args.cli_command}")
            parser.print_help()
            sys.exit(1)

    except KeyboardInterrupt:
        console.error("Operation interrupted by user")
        sys.exit(1)
    except ValueError as e:
        console.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
