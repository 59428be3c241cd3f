import json
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'src'))

from scanner_relay.api.api_client import ApiClient, build_payload
from scanner_relay.errors import DeliveryError
from scanner_relay.hid.decoder import build_record


class TestBuildPayload(unittest.TestCase):

    def test_empty_batch_is_ping(self):
        payload = build_payload([], "scanner-pi", "aa:bb:cc:dd:ee:ff")
        self.assertEqual(payload["requestType"], "ping")
        self.assertEqual(payload["data"], "[]")
        self.assertEqual(payload["hostname"], "scanner-pi")
        self.assertEqual(payload["macAddress"], "aa:bb:cc:dd:ee:ff")

    def test_data_batch(self):
        batch = [build_record("A1/5", "/", ["id", "qty"]), build_record("B2", "/", ["id", "qty"])]
        payload = build_payload(batch, "scanner-pi", None)
        self.assertEqual(payload["requestType"], "data")
        self.assertEqual(json.loads(payload["data"]), [{"id": "A1", "qty": "5"}, {"id": "B2"}])
        self.assertIsNone(payload["macAddress"])


class TestApiClient(unittest.TestCase):

    def setUp(self):
        self.client = ApiClient("https://scans.example.com/api", timeout=5)
        self.payload = build_payload([{"code": "abc"}], "host", None)

    @patch('scanner_relay.api.api_client.requests.Session.post')
    def test_post_scans_sends_multipart_form(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200, text="ok")
        self.client.post_scans(self.payload)

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://scans.example.com/api")
        self.assertEqual(kwargs["timeout"], 5)
        files = kwargs["files"]
        self.assertEqual(files["requestType"], (None, "data"))
        self.assertEqual(files["hostname"], (None, "host"))
        self.assertEqual(files["data"], (None, '[{"code": "abc"}]'))
        # unresolved MAC address is left out
        self.assertNotIn("macAddress", files)

    @patch('scanner_relay.api.api_client.requests.Session.post')
    def test_transport_error_raises_delivery_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("network unreachable")
        with self.assertRaises(DeliveryError) as ctx:
            self.client.post_scans(self.payload)
        self.assertIsNone(ctx.exception.status_code)

    @patch('scanner_relay.api.api_client.requests.Session.post')
    def test_http_error_raises_delivery_error(self, mock_post):
        mock_post.return_value = MagicMock(status_code=503, text="unavailable")
        with self.assertRaises(DeliveryError) as ctx:
            self.client.post_scans(self.payload)
        self.assertEqual(ctx.exception.status_code, 503)

    def test_user_agent(self):
        self.assertIn("ScannerRelay", self.client.session.headers["User-Agent"])


if __name__ == '__main__':
    unittest.main(verbosity=2)
