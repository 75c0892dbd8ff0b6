"""Argument parser setup for the CLI application."""

import argparse
from typing import Optional

from langclient import __version__
from langclient.services.lsp.descriptor import TransportKind
from langclient.services.lsp.languages.lsp_factory import LSPFactory

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _add_server_arguments(parser: argparse.ArgumentParser) -> None:
    """Options selecting which language server to launch."""
    parser.add_argument(
        "--server",
        choices=LSPFactory.get_supported_servers(),
        help="Use a built-in server definition instead of the configured server",
    )
    parser.add_argument(
        "--command",
        dest="server_command",
        help="Server executable (overrides the configured command)",
    )
    parser.add_argument(
        "--transport",
        choices=[kind.value for kind in TransportKind],
        help="Transport used to talk to the server (overrides the configuration)",
    )
    parser.add_argument(
        "--args",
        dest="server_args",
        nargs=argparse.REMAINDER,
        help="Extra arguments passed to the server executable",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Workspace root sent to the server (default: current directory)",
    )


def _add_common_arguments(
    parser: argparse.ArgumentParser, default_log_level: Optional[str]
) -> None:
    parser.add_argument("--config", help="Path to a JSON configuration file")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=default_log_level,
        help="Set the logging level (default: logging.level from the configuration)",
    )


def _add_probe_parser(subparsers, default_log_level: Optional[str]) -> None:
    """Add probe command parser."""
    probe_parser = subparsers.add_parser(
        "probe", help="Start the server, report its capabilities and stop it"
    )
    _add_common_arguments(probe_parser, default_log_level)
    _add_server_arguments(probe_parser)


def _add_lint_parser(subparsers, default_log_level: Optional[str]) -> None:
    """Add lint command parser."""
    lint_parser = subparsers.add_parser(
        "lint", help="Report the diagnostics the server publishes for files"
    )
    lint_parser.add_argument("files", nargs="+", help="Files to check")
    lint_parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for diagnostics per file (default: 10)",
    )
    _add_common_arguments(lint_parser, default_log_level)
    _add_server_arguments(lint_parser)


def _add_servers_parser(subparsers, default_log_level: Optional[str]) -> None:
    """Add servers command parser."""
    servers_parser = subparsers.add_parser(
        "servers", help="List the built-in server definitions"
    )
    _add_common_arguments(servers_parser, default_log_level)


def setup_argument_parser(
    default_log_level: Optional[str] = None,
) -> argparse.ArgumentParser:
    """Set up and return the main argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="langclient",
        description="Launch a language server and talk to it over LSP",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="cli_command", help="Available commands")

    _add_probe_parser(subparsers, default_log_level)
    _add_lint_parser(subparsers, default_log_level)
    _add_servers_parser(subparsers, default_log_level)

    return parser
