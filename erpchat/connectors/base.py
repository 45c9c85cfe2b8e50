"""
Base Data Gateway

Abstract interface to the ERP's data service. The pipeline only needs four
operations: list tables, fetch one table's fields, run a filtered and
limited row query, and check that credentials work.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from erpchat.models.chat import SessionConfig
from erpchat.models.schema import SchemaEntry

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception for data gateway errors."""

    pass


class ConnectivityError(GatewayError):
    """Network, TLS or authentication failure talking to the data service."""

    pass


class NotFoundError(GatewayError):
    """The requested table does not exist."""

    pass


class QueryError(GatewayError):
    """The data service rejected a row query. The message is the upstream one."""

    pass


class BaseDataGateway(ABC):
    """
    Abstract base class for data gateways.

    Every call receives the session configuration explicitly so a gateway
    holds no per-connection state.
    """

    @abstractmethod
    async def list_tables(self, config: SessionConfig) -> list[str]:
        """
        Return every queryable table name.

        Raises:
            ConnectivityError: On network or authentication failure
        """
        pass

    @abstractmethod
    async def fetch_schema(self, config: SessionConfig, name: str) -> SchemaEntry:
        """
        Return the field definitions of one table.

        Raises:
            NotFoundError: If the table is unknown
            ConnectivityError: On any other failure
        """
        pass

    @abstractmethod
    async def execute_query(
        self,
        config: SessionConfig,
        table: str,
        fields: list[str],
        filters: dict[str, Any],
        limit: int,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Run a filtered, limited list query.

        Raises:
            QueryError: If the service rejects the query
        """
        pass

    @abstractmethod
    async def check_connection(self, config: SessionConfig) -> bool:
        """Return True if the credentials work. Never raises."""
        pass
