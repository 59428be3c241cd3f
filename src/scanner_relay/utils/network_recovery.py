"""
Network recovery - runs the configured reset command when deliveries keep failing
"""
import logging
import shlex
import subprocess
import threading
from typing import List, Optional, Sequence, Union

from scanner_relay.errors import ResetInvocationError
from scanner_relay.utils.event_loop import spawn_daemon

logger = logging.getLogger(__name__)

RESET_TIMEOUT = 120  # seconds


class NetworkRecovery:
    """Invokes an out-of-process network reset script; its result is only logged"""

    def __init__(self, command: Optional[Union[str, Sequence[str]]], spawn=spawn_daemon):
        if isinstance(command, str):
            command = shlex.split(command)
        self.command: Optional[List[str]] = list(command) if command else None
        self.spawn = spawn
        self.reset_count = 0
        self._running = threading.Event()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def reset(self) -> bool:
        """
        Start the reset command in the background.

        Returns:
            True if a reset was started
        """
        if not self.command:
            logger.warning("⚠️ No network reset command configured, skipping reset")
            return False
        if self._running.is_set():
            logger.warning("⚠️ Network reset already running, skipping")
            return False

        self._running.set()
        self.reset_count += 1
        logger.info(f"🔄 Resetting network: {' '.join(self.command)}")
        self.spawn(self._run_reset, "NetworkReset")
        return True

    def _run_reset(self):
        try:
            result = self._invoke()
            if result.returncode == 0:
                logger.info("✅ Network reset completed")
            else:
                stderr = (result.stderr or "").strip()
                logger.error(f"❌ Network reset exited with code {result.returncode}: {stderr}")
        except ResetInvocationError as e:
            logger.error(f"❌ {e}")
        finally:
            self._running.clear()

    def _invoke(self) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(self.command, capture_output=True, text=True,
                                  timeout=RESET_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            raise ResetInvocationError(f"Network reset timed out after {RESET_TIMEOUT}s") from e
        except (OSError, subprocess.SubprocessError) as e:
            raise ResetInvocationError(f"Could not run network reset: {e}") from e
