"""Client adding the v2 safe deposit box API."""

from __future__ import annotations

from cerberus_client.clients.cerberus_client import CerberusClient, _require
from cerberus_client.core.models import SafeDepositBoxSummary, SafeDepositBoxV2

SAFE_DEPOSIT_BOX_V2 = "v2/safe-deposit-box"


class CerberusV2Client(CerberusClient):
    """Cerberus client with safe deposit boxes managed through IAM principal permissions."""

    def list_safe_deposit_boxes_v2(self) -> list[SafeDepositBoxSummary]:
        response = self.execute_with_retry("GET", self.build_url(SAFE_DEPOSIT_BOX_V2))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, list[SafeDepositBoxSummary])

    def get_safe_deposit_box_v2(self, sdb_id: str) -> SafeDepositBoxV2:
        _require(sdb_id, "sdb_id")
        response = self.execute_with_retry("GET", self.build_url(SAFE_DEPOSIT_BOX_V2, sdb_id))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SafeDepositBoxV2)

    def create_safe_deposit_box_v2(self, sdb: SafeDepositBoxV2) -> SafeDepositBoxV2:
        """Create a safe deposit box and return it as stored by Cerberus."""
        _require(sdb, "sdb")
        response = self.execute_with_retry("POST", self.build_url(SAFE_DEPOSIT_BOX_V2), sdb)
        if response.status_code != 201:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SafeDepositBoxV2)

    def update_safe_deposit_box_v2(self, sdb_id: str, sdb: SafeDepositBoxV2) -> SafeDepositBoxV2:
        """Replace a safe deposit box and return it as stored by Cerberus."""
        _require(sdb_id, "sdb_id")
        _require(sdb, "sdb")
        response = self.execute_with_retry("PUT", self.build_url(SAFE_DEPOSIT_BOX_V2, sdb_id), sdb)
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SafeDepositBoxV2)

    def delete_safe_deposit_box_v2(self, sdb_id: str) -> None:
        _require(sdb_id, "sdb_id")
        response = self.execute_with_retry("DELETE", self.build_url(SAFE_DEPOSIT_BOX_V2, sdb_id))
        if response.status_code != 204:
            self.parse_and_raise_api_error_response(response)
