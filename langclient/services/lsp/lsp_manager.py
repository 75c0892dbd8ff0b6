"""
Owner of the active language client between editor activation and deactivation.

The host creates one LSPManager, calls activate() when it starts up and
deactivate() when it shuts down. The manager holds at most one client, and a
new client is only built after the previous one has been handed to
deactivate().
"""

import threading
from concurrent.futures import Future
from typing import Optional

from loguru import logger

from langclient.config.settings import Config, get_config
from langclient.utils.console import console
from langclient.utils.error_utils import raiseError

from .descriptor import ServerDescriptor
from .document_selector import DocumentSelector
from .exceptions import LSPErrorType
from .language_client import LanguageClient
from .languages.lsp_factory import LSPFactory


class LSPManager:
    """Explicitly owned holder of the single active LanguageClient."""

    def __init__(self, settings: Optional[Config] = None, root_path: Optional[str] = None):
        self._settings = settings
        self.root_path = root_path
        self._client: Optional[LanguageClient] = None
        self._lock = threading.Lock()

    @property
    def settings(self) -> Config:
        if self._settings is None:
            self._settings = get_config()
        return self._settings

    @property
    def client(self) -> Optional[LanguageClient]:
        return self._client

    def create_client(self, server: Optional[str] = None) -> LanguageClient:
        """
        Build an idle client.

        With a server name the registered definition supplies the launch
        descriptor and document selector; otherwise both come from the
        configuration file.
        """
        client_config = self.settings.client
        if server:
            definition = LSPFactory.create_lsp(server)
            descriptor = definition.get_descriptor()
            selector = definition.document_selector
            client_id = definition.server_name
            name = definition.display_name
            init_options = definition.init_options
        else:
            server_config = self.settings.server
            descriptor = ServerDescriptor.create(
                server_config.command, server_config.transport, server_config.args
            )
            selector = DocumentSelector.from_dicts(client_config.document_selector)
            client_id = client_config.client_id
            name = client_config.name
            init_options = None

        logger.debug(
            f"Creating client {client_id}: {descriptor.command} over "
            f"{descriptor.transport.value}, selector {selector.to_list()}"
        )
        return LanguageClient(
            client_id,
            name,
            descriptor,
            selector,
            root_path=self.root_path,
            init_options=init_options,
            handshake_timeout=client_config.handshake_timeout,
            shutdown_timeout=client_config.shutdown_timeout,
            connect_timeout=client_config.connect_timeout,
        )

    def activate(self, server: Optional[str] = None) -> Future:
        """
        Create the client and start it.

        Returns the start future. Activating again before deactivate() is an
        error.
        """
        with self._lock:
            if self._client is not None:
                raiseError(
                    LSPErrorType.INVALID_STATE,
                    f"{self._client.name} is already active; deactivate it first",
                    RuntimeError,
                )
            client = self.create_client(server)
            self._client = client

        client.on_session_ended(
            lambda error: console.warning(f"{client.name} session ended: {error}")
        )
        console.process(f"Starting {client.name}...")
        future = client.start()
        future.add_done_callback(lambda f: self._report_start(client, f))
        return future

    @staticmethod
    def _report_start(client: LanguageClient, future: Future) -> None:
        error = future.exception()
        if error is not None:
            console.error(f"Failed to start {client.name}: {error}")
        else:
            console.success(f"{client.name} started successfully")

    def deactivate(self) -> Optional[Future]:
        """
        Stop and forget the active client.

        Returns None when nothing was ever activated, otherwise the client's
        stop future.
        """
        with self._lock:
            client = self._client
            self._client = None

        if client is None:
            return None
        logger.debug(f"Deactivating {client.client_id}")
        return client.stop()
