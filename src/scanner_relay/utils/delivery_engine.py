"""
Delivery Engine - ships scan batches to the collection endpoint.

Sends run on a worker thread; the outcome comes back through the event loop
where the failure counter and the retry holdover are updated.
"""
import logging
from typing import Callable, Optional

from scanner_relay.api.api_client import ApiClient, build_payload
from scanner_relay.errors import DeliveryError
from scanner_relay.scan_buffer import Batch, ScanBuffer
from scanner_relay.utils.event_loop import spawn_daemon
from scanner_relay.utils.network_recovery import NetworkRecovery

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 5


class DeliveryEngine:
    """Flushes the scan buffer and escalates to a network reset after repeated failures"""

    def __init__(self, buffer: ScanBuffer, client: ApiClient, recovery: NetworkRecovery,
                 post: Callable, hostname: str = "", mac_address: Optional[str] = None,
                 failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
                 reset_on_success: bool = True, spawn=spawn_daemon):
        self.buffer = buffer
        self.client = client
        self.recovery = recovery
        self.post = post
        self.hostname = hostname
        self.mac_address = mac_address
        self.failure_threshold = failure_threshold
        self.reset_on_success = reset_on_success
        self.spawn = spawn

        # State tracking
        self.failure_count = 0
        self.in_flight = 0
        self.sent_count = 0
        self.failed_count = 0
        self._settle_callbacks = []

    @property
    def busy(self) -> bool:
        return self.in_flight > 0

    def flush(self, force: bool = False, on_settled: Optional[Callable[[bool], None]] = None) -> bool:
        """
        Drain the buffer and send it, even when empty (the empty send is the liveness ping).

        Args:
            force: send even if an earlier delivery has not settled yet
            on_settled: called on the loop thread with True/False once this send settles

        Returns:
            True if a send was started
        """
        if self.busy and not force:
            logger.info("⏳ Previous delivery still in flight, skipping this cycle")
            return False

        batch = self.buffer.drain_for_delivery()
        payload = build_payload(batch, self.hostname, self.mac_address)
        logger.info(f"📤 Sending {len(batch)} scans to server.")

        self.in_flight += 1
        self.spawn(lambda: self._send(batch, payload, on_settled), "Delivery")
        return True

    def _send(self, batch: Batch, payload, on_settled):
        # worker thread: no shared state touched here
        error = None
        try:
            self.client.post_scans(payload)
        except DeliveryError as e:
            error = e
        except Exception as e:
            # the completion event must still be posted or in_flight never drops
            logger.error(f"❌ Unexpected delivery error: {e}", exc_info=True)
            error = DeliveryError(f"Unexpected delivery error: {e}")
        self.post(self._on_settled, batch, error, on_settled)

    def _on_settled(self, batch: Batch, error: Optional[DeliveryError], on_settled):
        self.in_flight -= 1
        if error is None:
            self._handle_success(batch)
        else:
            self._handle_failure(batch, error)

        if on_settled is not None:
            on_settled(error is None)
        if not self.busy:
            callbacks, self._settle_callbacks = self._settle_callbacks, []
            for callback in callbacks:
                callback()

    def _handle_success(self, batch: Batch):
        self.sent_count += len(batch)
        if self.reset_on_success:
            self.failure_count = 0
        logger.info("✅ Successful response")

    def _handle_failure(self, batch: Batch, error: DeliveryError):
        self.failed_count += 1
        self.failure_count += 1
        self.buffer.requeue(batch)
        logger.error(f"❌ Send error ({self.failure_count} consecutive): {error}")

        if self.failure_count >= self.failure_threshold:
            logger.warning(f"⚠️ {self.failure_count} failed deliveries, resetting network")
            self.failure_count = 0
            self.recovery.reset()

    def when_idle(self, callback: Callable[[], None]):
        """Run callback on the loop thread once no delivery is in flight"""
        if not self.busy:
            callback()
        else:
            self._settle_callbacks.append(callback)

    def get_status(self) -> dict:
        return {
            "in_flight": self.in_flight,
            "consecutive_failures": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "scans_sent": self.sent_count,
            "failed_deliveries": self.failed_count,
            "pending_scans": len(self.buffer),
            "network_resets": self.recovery.reset_count,
        }
