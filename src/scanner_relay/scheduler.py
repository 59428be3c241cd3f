"""
Scanner relay service: wires the components together and drives the delivery cycle.

Every cycle flushes the scan buffer to the endpoint, then looks for newly
attached scanners.
"""
import logging
from typing import Optional

from scanner_relay.api.api_client import ApiClient
from scanner_relay.hid.decoder import HidDecoder
from scanner_relay.hid.device_registry import DeviceRegistry, format_path
from scanner_relay.scan_buffer import ScanBuffer
from scanner_relay.utils.config import get_endpoint
from scanner_relay.utils.delivery_engine import DeliveryEngine
from scanner_relay.utils.event_loop import EventLoop, spawn_daemon
from scanner_relay.utils.host_identity import get_hostname, get_mac_address
from scanner_relay.utils.network_recovery import NetworkRecovery

logger = logging.getLogger(__name__)


class Scheduler:
    def __init__(self, config, loop: Optional[EventLoop] = None, hid_api=None,
                 client: Optional[ApiClient] = None, recovery: Optional[NetworkRecovery] = None,
                 spawn=spawn_daemon, identity=None):
        """
        Args:
            config: validated configuration dict
            loop: event loop, a new one by default
            hid_api: hidapi module override
            client: endpoint client override
            recovery: network recovery override
            spawn: starts background threads
            identity: callable returning (hostname, mac_address)
        """
        self.config = config
        self.loop = loop or EventLoop()
        self.interval = float(config["send_frequency"])
        self.identity = identity or (lambda: (get_hostname(), get_mac_address()))

        self.buffer = ScanBuffer()
        self.client = client or ApiClient(get_endpoint(config), timeout=config.get("request_timeout", 30))
        self.recovery = recovery or NetworkRecovery(config.get("network_reset_command"), spawn=spawn)
        self.registry = DeviceRegistry(
            config["input_device"],
            self._new_decoder,
            self.loop.post,
            hid_api=hid_api,
            spawn=spawn,
        )
        self.engine = DeliveryEngine(
            self.buffer,
            self.client,
            self.recovery,
            self.loop.post,
            failure_threshold=config.get("failure_reset_threshold", 5),
            reset_on_success=config.get("reset_failures_on_success", True),
            spawn=spawn,
        )

        self.started = False
        self.stopping = False
        self.stopped = False

    def _new_decoder(self, path) -> HidDecoder:
        return HidDecoder(
            self.config["data_separator"],
            self.config["data_fields"],
            self.buffer.append,
            name=format_path(path),
        )

    def start(self):
        """Resolve host identity and open the scanners already attached"""
        hostname, mac_address = self.identity()
        self.engine.hostname = hostname
        self.engine.mac_address = mac_address
        logger.info(f"🚀 Spinning up scanner server. Current machine has hostname: {hostname}")
        if mac_address:
            logger.info(f"MAC address: {mac_address}")

        self.registry.refresh()
        self.started = True

    def serve(self):
        """start(), then run the delivery cycle on this thread until stop() completes"""
        self.start()
        logger.info(f"⏱️ Sending scans every {self.interval:g}s")
        self.loop.run(self.interval, self.tick)

    def tick(self):
        """One delivery cycle: flush, then rediscover"""
        self.engine.flush()
        self.registry.refresh()

    def request_stop(self):
        """Thread and signal safe: schedule stop() on the loop thread"""
        self.loop.post(self.stop)

    def stop(self):
        """Cancel the timer, release the scanners and send what is left before exiting"""
        if self.stopping:
            return
        self.stopping = True
        logger.info("🛑 Shutting down scanner server...")

        self.loop.cancel_timer()
        self.registry.close_all()
        self.engine.flush(force=True, on_settled=self._on_final_flush)

    def _on_final_flush(self, success: bool):
        if success:
            logger.info("✅ Final scans delivered")
        else:
            logger.warning("⚠️ Final delivery failed, exiting anyway")
        self.engine.when_idle(self._terminate)

    def _terminate(self):
        self.client.close()
        self.stopped = True
        self.loop.stop()
        logger.info("⏹️ Scanner server stopped")

    def get_status(self) -> dict:
        status = self.engine.get_status()
        status.update({
            "scanners": [format_path(path) for path in self.registry.tracked_paths()],
            "holdover_scans": self.buffer.holdover_count,
            "stopping": self.stopping,
        })
        return status
