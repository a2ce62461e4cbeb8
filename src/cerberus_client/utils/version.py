"""Client version reporting."""

from cerberus_client import __version__

CERBERUS_CLIENT_HEADER = "X-Cerberus-Client"
HEADER_VALUE_PREFIX = "CerberusPythonClient"


def get_version() -> str:
    """Version of this client library."""
    return __version__


def get_client_header_value() -> str:
    """Value sent in the ``X-Cerberus-Client`` header."""
    return f"{HEADER_VALUE_PREFIX}/{get_version()}"
