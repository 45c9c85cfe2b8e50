"""
Frappe REST Gateway

Data gateway backed by the Frappe/ERPNext REST API:

- ``GET /api/resource/DocType``              list DocTypes
- ``GET /api/resource/DocType/<name>``       DocType definition
- ``GET /api/resource/<doctype>``            filtered list query
- ``GET /api/method/frappe.auth.get_logged_user``  credential check

Authentication uses the ``Authorization: token <key>:<secret>`` header.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from erpchat.connectors.base import (
    BaseDataGateway,
    ConnectivityError,
    NotFoundError,
    QueryError,
)
from erpchat.models.chat import SessionConfig
from erpchat.models.schema import FieldDescriptor, SchemaEntry

logger = logging.getLogger(__name__)

LAYOUT_FIELDTYPES = frozenset(
    {
        "Section Break",
        "Column Break",
        "Tab Break",
        "HTML",
        "Button",
        "Fold",
        "Heading",
        "Image",
    }
)


class FrappeGateway(BaseDataGateway):
    """
    Frappe REST implementation of the data gateway.

    Each call opens a short-lived ``httpx.AsyncClient``. A custom transport
    can be injected (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        list_limit: int = 0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.list_limit = list_limit
        self._transport = transport

    def _client(self, config: SessionConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=config.url,
            headers={**config.auth_header(), "Accept": "application/json"},
            timeout=self.timeout,
            verify=self.verify_ssl,
            transport=self._transport,
        )

    async def _get(
        self, config: SessionConfig, path: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        try:
            async with self._client(config) as client:
                return await client.get(path, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                f"Frappe request failed: {e}",
                extra={"url": config.url, "path": path, "error_type": type(e).__name__},
            )
            raise ConnectivityError(f"Could not reach {config.url}: {e}") from e

    async def list_tables(self, config: SessionConfig) -> list[str]:
        params = {
            "fields": json.dumps(["name"]),
            "filters": json.dumps([["istable", "=", 0]]),
            "limit_page_length": self.list_limit,
            "order_by": "name asc",
        }
        response = await self._get(config, "/api/resource/DocType", params)
        if response.status_code != 200:
            raise ConnectivityError(
                f"Failed to list DocTypes (HTTP {response.status_code}): "
                f"{_upstream_message(response)}"
            )
        rows = _data(response)
        if not isinstance(rows, list):
            raise ConnectivityError("Unexpected response while listing DocTypes")
        names = [row["name"] for row in rows if isinstance(row, dict) and row.get("name")]
        logger.info(
            f"Discovered {len(names)} DocTypes",
            extra={"url": config.url, "table_count": len(names)},
        )
        return names

    async def fetch_schema(self, config: SessionConfig, name: str) -> SchemaEntry:
        response = await self._get(config, f"/api/resource/DocType/{name}")
        if response.status_code == 404 or _exc_type(response) == "DoesNotExistError":
            raise NotFoundError(f"DocType {name} not found")
        if response.status_code != 200:
            raise ConnectivityError(
                f"Failed to fetch schema for {name} (HTTP {response.status_code}): "
                f"{_upstream_message(response)}"
            )

        doc = _data(response)
        if not isinstance(doc, dict) or not isinstance(doc.get("fields"), list):
            raise ConnectivityError(f"Unexpected response for DocType {name}: no field definitions")

        try:
            fields = []
            for raw in doc["fields"]:
                if not isinstance(raw, dict):
                    raise ConnectivityError(f"Malformed field definition in DocType {name}")
                fieldname = raw.get("fieldname")
                fieldtype = raw.get("fieldtype") or "Data"
                if not fieldname or fieldtype in LAYOUT_FIELDTYPES:
                    continue
                fields.append(
                    FieldDescriptor(
                        fieldname=fieldname,
                        label=raw.get("label") or fieldname,
                        fieldtype=fieldtype,
                        options=raw.get("options") or None,
                    )
                )
            return SchemaEntry(name=doc.get("name") or name, fields=tuple(fields))
        except ValidationError as e:
            raise ConnectivityError(
                f"Malformed field definition in DocType {name}: {e.errors()[0]['msg']}"
            ) from e

    async def execute_query(
        self,
        config: SessionConfig,
        table: str,
        fields: list[str],
        filters: dict[str, Any],
        limit: int,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "fields": json.dumps(fields),
            "filters": json.dumps(filters, default=str),
            "limit_page_length": limit,
        }
        if order_by:
            params["order_by"] = order_by

        response = await self._get(config, f"/api/resource/{table}", params)
        if response.status_code != 200:
            message = _upstream_message(response)
            logger.warning(
                f"Query on {table} rejected: {message}",
                extra={"table": table, "status_code": response.status_code},
            )
            raise QueryError(message)

        rows = _data(response)
        if not isinstance(rows, list):
            raise QueryError(f"Unexpected response shape from {table}")
        return rows

    async def check_connection(self, config: SessionConfig) -> bool:
        try:
            response = await self._get(config, "/api/method/frappe.auth.get_logged_user")
        except ConnectivityError:
            return False
        ok = response.status_code == 200
        if not ok:
            logger.warning(
                "Frappe connection check failed",
                extra={"url": config.url, "status_code": response.status_code},
            )
        return ok


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _data(response: httpx.Response) -> Any:
    payload = _json(response)
    if not isinstance(payload, dict):
        return {}
    return payload.get("data", {})


def _exc_type(response: httpx.Response) -> str | None:
    payload = _json(response)
    if isinstance(payload, dict):
        return payload.get("exc_type")
    return None


def _upstream_message(response: httpx.Response) -> str:
    """Extract the most specific error message Frappe returned."""
    payload = _json(response)
    if not isinstance(payload, dict):
        return response.text.strip() or f"HTTP {response.status_code}"

    server_messages = payload.get("_server_messages")
    if server_messages:
        messages = []
        try:
            for item in json.loads(server_messages):
                try:
                    decoded = json.loads(item)
                except (TypeError, ValueError):
                    decoded = item
                if isinstance(decoded, dict):
                    decoded = decoded.get("message", "")
                if decoded:
                    messages.append(str(decoded))
        except (TypeError, ValueError):
            messages = [str(server_messages)]
        if messages:
            return "; ".join(messages)

    for key in ("exception", "message", "exc_type"):
        value = payload.get(key)
        if value:
            return str(value)
    return f"HTTP {response.status_code}"
