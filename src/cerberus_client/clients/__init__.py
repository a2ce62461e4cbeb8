"""Cerberus HTTP clients."""

from cerberus_client.clients.base import BaseCerberusClient
from cerberus_client.clients.cerberus_client import CerberusClient
from cerberus_client.clients.v2_client import CerberusV2Client

__all__ = [
    "BaseCerberusClient",
    "CerberusClient",
    "CerberusV2Client",
]
