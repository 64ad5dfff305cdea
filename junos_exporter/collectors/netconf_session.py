"""NETCONF-over-SSH transport shared by all collectors of a scrape."""

import asyncio
import logging
from typing import Callable, Optional

import paramiko
from lxml import etree
from ncclient import manager
from ncclient.operations.errors import TimeoutExpiredError
from ncclient.operations.rpc import RaiseMode, RPCError
from ncclient.transport.errors import TransportError
from ncclient.xml_ import to_ele

from ..config.models import TargetConfig
from ..errors import RpcExecutionError, TransportOpenError


class NetconfSession:
    """Blocking NETCONF session to one Junos device."""

    def __init__(self, connection, target: str, logger: logging.Logger):
        self._connection = connection
        self.target = target
        self.logger = logger

    @classmethod
    def open(cls, config: TargetConfig, logger: logging.Logger) -> "NetconfSession":
        """
        Connect and authenticate to the device.

        Args:
            config: Target configuration of the scrape
            logger: Logger instance

        Returns:
            NetconfSession: Open session

        Raises:
            TransportOpenError: If the SSH or NETCONF handshake fails
        """
        logger.debug(f"Connecting to {config.host}:{config.port} as {config.username}")
        try:
            connection = manager.connect(
                host=config.host,
                port=config.port,
                username=config.username,
                password=config.password,
                key_filename=config.ssh_key,
                timeout=config.timeout,
                device_params={"name": "junos"},
                hostkey_verify=False,
                allow_agent=False,
                look_for_keys=False,
            )
        except (TransportError, paramiko.SSHException, OSError) as e:
            logger.error(f"Failed to connect to {config.target}: {e}")
            raise TransportOpenError(config.target, e) from e

        # Warnings in a reply are not failures; the timeout bounds the handshake only
        connection.raise_mode = RaiseMode.ERRORS
        connection.timeout = None
        logger.debug(f"Successfully connected to {config.target}")
        return cls(connection, config.target, logger)

    def execute(self, rpc_xml: str) -> str:
        """
        Send one RPC and return the raw reply document.

        Args:
            rpc_xml: RPC body, e.g. "<get-fpc-information/>"

        Returns:
            str: Reply XML

        Raises:
            RpcExecutionError: If the call fails, times out or returns an rpc-error
        """
        try:
            reply = self._connection.rpc(to_ele(rpc_xml))
        except (RPCError, TimeoutExpiredError, TransportError, etree.XMLSyntaxError) as e:
            self.logger.error(f"RPC {rpc_xml} failed on {self.target}: {e}")
            raise RpcExecutionError(e) from e
        return reply.xml

    def close(self) -> None:
        try:
            self._connection.close_session()
        except (TransportError, RPCError, TimeoutExpiredError) as e:
            self.logger.warning(f"Error closing session to {self.target}: {e}")


class SharedSession:
    """
    Asyncio front end for one NetconfSession.

    Collectors of a scrape run concurrently but the device sees one RPC at a
    time: each request/reply exchange holds the lock and runs in the default
    executor, so reply decoding of one collector overlaps the next RPC.
    """

    def __init__(self, session):
        self._session = session
        self._lock = asyncio.Lock()

    @property
    def target(self) -> str:
        return self._session.target

    async def execute(self, rpc_xml: str) -> str:
        async with self._lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._session.execute, rpc_xml)

    async def close(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._session.close)


async def open_shared_session(config: TargetConfig, logger: logging.Logger,
                              session_factory: Optional[Callable] = None) -> SharedSession:
    """
    Open the transport for one scrape without blocking the event loop.

    Args:
        config: Target configuration
        logger: Logger instance
        session_factory: Callable (config, logger) -> session, defaults to NetconfSession.open

    Raises:
        TransportOpenError: If the session cannot be established
    """
    factory = session_factory or NetconfSession.open
    loop = asyncio.get_running_loop()
    session = await loop.run_in_executor(None, factory, config, logger)
    return SharedSession(session)
