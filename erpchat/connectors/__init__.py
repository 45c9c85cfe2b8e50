"""
Data Gateways

Access to the ERP's data service.

Available:
    - BaseDataGateway: Abstract interface
    - FrappeGateway: Frappe REST implementation
    - GatewayError, ConnectivityError, NotFoundError, QueryError
"""

from erpchat.connectors.base import (
    BaseDataGateway,
    ConnectivityError,
    GatewayError,
    NotFoundError,
    QueryError,
)
from erpchat.connectors.frappe import FrappeGateway

__all__ = [
    "BaseDataGateway",
    "ConnectivityError",
    "FrappeGateway",
    "GatewayError",
    "NotFoundError",
    "QueryError",
]
