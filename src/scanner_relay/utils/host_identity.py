"""
Host identity sent with every delivery
"""
import logging
import re
import socket
import subprocess
import uuid
from typing import Optional

logger = logging.getLogger(__name__)

_MULTICAST_BIT = 1 << 40


def get_hostname() -> str:
    return socket.gethostname()


def get_mac_address() -> Optional[str]:
    """
    MAC address of the primary network interface.

    Tries `ip link show` first (Linux), then uuid.getnode().

    Returns:
        str: lower case colon separated address, or None
    """
    try:
        result = subprocess.run(
            ["ip", "link", "show"],
            capture_output=True,
            text=True,
            timeout=5
        )
        if result.returncode == 0:
            mac = _parse_ip_link(result.stdout)
            if mac:
                return mac
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"ip link show failed: {e}")

    node = uuid.getnode()
    # getnode() sets the multicast bit when it had to make up a random number
    if node & _MULTICAST_BIT:
        logger.warning("⚠️ Could not resolve MAC address")
        return None
    return ':'.join(f"{(node >> shift) & 0xff:02x}" for shift in range(40, -1, -8))


def _parse_ip_link(output: str) -> Optional[str]:
    """First non-loopback link/ether address in `ip link show` output"""
    for match in re.finditer(r'link/ether\s+([0-9a-fA-F:]{17})', output):
        mac = match.group(1).lower()
        if mac != "00:00:00:00:00:00":
            return mac
    return None
