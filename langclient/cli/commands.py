"""Command handlers for the CLI application."""

import os
import sys
from concurrent.futures import TimeoutError as FutureTimeoutError

from loguru import logger
from rich.table import Table

from langclient.config.settings import Config, get_config
from langclient.services.lsp.languages.lsp_factory import LSPFactory
from langclient.services.lsp.lint_checker import LintChecker
from langclient.services.lsp.lsp_manager import LSPManager
from langclient.utils.console import console


def load_settings(args) -> Config:
    """Load the configuration and apply the server overrides from the command line."""
    settings = get_config(config_file=getattr(args, "config", None))

    if getattr(args, "server_command", None):
        settings.server.command = args.server_command
    if getattr(args, "transport", None):
        settings.server.transport = args.transport
    if getattr(args, "server_args", None):
        settings.server.args = list(args.server_args)
    return settings


def _start_timeout(settings: Config) -> float:
    # Launch and handshake are bounded separately; leave slack for teardown
    return settings.client.connect_timeout + settings.client.handshake_timeout + 5.0


def _activate(args, settings: Config) -> LSPManager:
    manager = LSPManager(settings=settings, root_path=os.path.abspath(args.root))
    future = manager.activate(getattr(args, "server", None))
    try:
        future.result(timeout=_start_timeout(settings))
    except FutureTimeoutError:
        console.error("Language server did not finish starting in time")
        _deactivate(manager, settings)
        sys.exit(1)
    except Exception as e:
        logger.debug(f"Start failed: {e}")
        _deactivate(manager, settings)
        sys.exit(1)
    return manager


def _deactivate(manager: LSPManager, settings: Config) -> None:
    future = manager.deactivate()
    if future is None:
        return
    try:
        future.result(timeout=settings.client.shutdown_timeout * 2 + 5.0)
    except FutureTimeoutError:
        logger.warning("Language server did not stop in time")


def handle_probe_command(args) -> None:
    """Start the server, print what it reports about itself and stop it."""
    settings = load_settings(args)
    manager = _activate(args, settings)
    client = manager.client

    try:
        session = client.session
        server_info = (session.server_info if session else None) or {}
        table = Table(title=f"{client.name} capabilities")
        table.add_column("Capability", style="key")
        table.add_column("Value")
        for key in sorted(client.capabilities):
            table.add_row(key, str(client.capabilities[key]))

        if server_info:
            console.info(
                f"Server: {server_info.get('name', 'unknown')} "
                f"{server_info.get('version', '')}".rstrip()
            )
        console.print(table)
    finally:
        _deactivate(manager, settings)


def handle_lint_command(args) -> None:
    """Open each file, print the published diagnostics and stop the server."""
    settings = load_settings(args)
    manager = _activate(args, settings)
    client = manager.client

    issue_count = 0
    failed = False
    try:
        for file_path in args.files:
            try:
                issues = LintChecker.check_lint(client, file_path, timeout=args.timeout)
            except (FileNotFoundError, ValueError) as e:
                console.error(str(e))
                failed = True
                continue
            except RuntimeError as e:
                console.error(f"Lint check aborted: {e}")
                failed = True
                break

            console.path(file_path)
            if not issues:
                console.dim("  no issues")
            for issue in issues:
                console.print(f"  {issue}", markup=False)
            issue_count += len(issues)
    finally:
        _deactivate(manager, settings)

    if issue_count:
        console.warning(f"Found {issue_count} issue(s)")
    elif not failed:
        console.success("No issues found")

    if failed or issue_count:
        sys.exit(1)


def handle_servers_command(args) -> None:
    """List the built-in server definitions."""
    table = Table(title="Built-in language servers")
    table.add_column("Name", style="key")
    table.add_column("Executable", style="command")
    table.add_column("Documents")

    for server in LSPFactory.get_supported_servers():
        definition = LSPFactory.create_lsp(server)
        languages = "\n".join(
            f"{f.scheme}:{f.language}" for f in definition.document_selector.filters
        )
        table.add_row(server, definition.exec_name, languages)

    console.print(table)
