"""
Discovery and tracking of USB barcode scanners exposed as HID devices.

Each open scanner gets its own reader thread. Readers only post events to
the service event loop; the tracked set is changed on the loop thread.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Set, Tuple

from scanner_relay.errors import DeviceFaultError, DeviceOpenError
from scanner_relay.hid.decoder import HidDecoder
from scanner_relay.utils.event_loop import spawn_daemon

# Optional import so that config/hostname commands work on hosts without hidapi
try:
    import hid
    HID_AVAILABLE = True
except ImportError:
    HID_AVAILABLE = False
    hid = None

logger = logging.getLogger(__name__)

# Largest input report we expect from a keyboard-mode scanner
REPORT_READ_SIZE = 64
READ_TIMEOUT_MS = 250


def format_path(path) -> str:
    if isinstance(path, bytes):
        return path.decode(errors="replace")
    return str(path)


def _plural(count: int) -> str:
    return f"{count} scanner{'' if count == 1 else 's'}"


class ScannerDevice:
    """One open scanner: the hidapi handle, its decoder and its reader thread"""

    def __init__(self, path, handle, decoder: HidDecoder):
        self.path = path
        self.handle = handle
        self.decoder = decoder
        self.thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._close_lock = threading.Lock()
        self.closed = False

    @property
    def name(self) -> str:
        return format_path(self.path)

    def start(self, post: Callable, on_fault: Callable, spawn=spawn_daemon):
        self.thread = spawn(lambda: self._read_loop(post, on_fault), f"Reader-{self.name}")

    def stop(self):
        self._stop.set()
        if self.thread is None:
            # no reader running to close the handle for us
            self._close_handle()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def _read_loop(self, post, on_fault):
        while not self._stop.is_set():
            try:
                report = self.handle.read(REPORT_READ_SIZE, timeout_ms=READ_TIMEOUT_MS)
            except (OSError, IOError, ValueError) as e:
                if not self._stop.is_set():
                    post(on_fault, self, e)
                break
            if report:
                post(self.decoder.feed, report)
        self._close_handle()

    def _close_handle(self):
        with self._close_lock:
            if self.closed:
                return
            self.closed = True
        try:
            self.handle.close()
        except (OSError, IOError) as e:
            logger.warning(f"⚠️ Error closing device {self.name}: {e}")


class DeviceRegistry:
    """
    Tracks open scanners by device path.

    A path is opened at most once; a failed open is retried on every refresh.
    """

    def __init__(self, input_device: str, decoder_factory: Callable[[object], HidDecoder],
                 post: Callable, hid_api=None, spawn=spawn_daemon):
        """
        Args:
            input_device: substring that must appear in the product name
            decoder_factory: builds a fresh decoder for a device path
            post: event loop post function
            hid_api: hidapi module, replaced in tests
            spawn: starts reader threads
        """
        self.input_device = input_device
        self.decoder_factory = decoder_factory
        self.post = post
        self.hid_api = hid_api if hid_api is not None else hid
        self.spawn = spawn
        self.devices: Dict[object, ScannerDevice] = {}

    @property
    def count(self) -> int:
        return len(self.devices)

    def tracked_paths(self) -> List:
        return list(self.devices)

    def list_devices(self) -> List[Tuple[object, str]]:
        """Every HID device on the host as (path, product name)"""
        if self.hid_api is None:
            logger.error("❌ hidapi is not installed - install with: pip install hidapi")
            return []
        return [(info.get('path'), info.get('product_string') or '')
                for info in self.hid_api.enumerate()]

    def discover(self) -> Set:
        """Paths of all attached devices whose product name contains input_device"""
        paths = {path for path, product in self.list_devices()
                 if self.input_device in product}
        if not paths:
            logger.info("No code readers found.")
        return paths

    def refresh(self):
        """Open every matching device that is not tracked yet"""
        for path in sorted(self.discover(), key=format_path):
            if path in self.devices:
                continue
            try:
                device = self._open(path)
            except DeviceOpenError as e:
                logger.error(f"❌ {e}")
                continue

            self.devices[path] = device
            device.start(self.post, self._on_fault, self.spawn)
            logger.info("✅ Scanner located.")
            logger.info(f"📡 Listening to {_plural(self.count)}.")

    def _open(self, path) -> ScannerDevice:
        try:
            handle = self.hid_api.device()
            handle.open_path(path)
        except (OSError, IOError, ValueError) as e:
            raise DeviceOpenError(format_path(path), e) from e
        return ScannerDevice(path, handle, self.decoder_factory(path))

    def _on_fault(self, device: ScannerDevice, cause):
        if self.devices.get(device.path) is not device:
            return
        del self.devices[device.path]
        device.stop()
        error = DeviceFaultError(device.name, cause)
        logger.error(f"❌ {error}. Removing from active list.")
        logger.info(f"📡 Listening to {_plural(self.count)}.")

    def close_all(self):
        """Stop every reader; each reader closes its own handle on the way out"""
        devices = list(self.devices.values())
        self.devices.clear()
        for device in devices:
            device.stop()
        if devices:
            logger.info(f"🔌 Released {_plural(len(devices))}.")
