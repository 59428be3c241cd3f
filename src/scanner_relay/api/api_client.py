"""
HTTP client for the scan collection endpoint.
"""
import json
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import requests

from scanner_relay.errors import DeliveryError

logger = logging.getLogger(__name__)

USER_AGENT = "ScannerRelay/1.0"


def build_payload(batch: Iterable[Mapping[str, str]], hostname: str,
                  mac_address: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Build the form fields for one delivery.

    Args:
        batch: scan records in scan order
        hostname: host identifier
        mac_address: hardware address, None if it could not be resolved

    Returns:
        dict: requestType, hostname, macAddress and JSON encoded data
    """
    records = [dict(record) for record in batch]
    return {
        "requestType": "data" if records else "ping",
        "hostname": hostname,
        "macAddress": mac_address,
        "data": json.dumps(records),
    }


class ApiClient:
    """Posts scan batches to the collection endpoint as multipart form data."""

    def __init__(self, endpoint: str, timeout: float = 30):
        """
        Initialize the API client.

        Args:
            endpoint (str): URL of the collection endpoint for the active environment
            timeout (float): Request timeout in seconds
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': USER_AGENT
        })

    def post_scans(self, payload: Mapping[str, Any]) -> requests.Response:
        """
        Send one delivery payload.

        Args:
            payload (dict): form fields, None values are left out

        Returns:
            requests.Response: the endpoint response

        Raises:
            DeliveryError: on transport failure or a non-2xx status
        """
        # (None, value) parts force multipart/form-data without file uploads
        files = {name: (None, str(value)) for name, value in payload.items() if value is not None}
        try:
            response = self.session.post(self.endpoint, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"Request to {self.endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise DeliveryError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def close(self):
        self.session.close()
