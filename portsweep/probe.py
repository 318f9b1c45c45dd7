from __future__ import annotations

import ipaddress
import logging
import socket
import threading
from typing import Optional

logger = logging.getLogger(__name__)

# settimeout() and the connect deadline overflow near threading.TIMEOUT_MAX
MAX_TIMEOUT_S = threading.TIMEOUT_MAX / 2


def probe(ip: str, port: int, timeout_ms: int) -> bool:
    """
    One TCP connect attempt bounded by timeout_ms.
    Returns True iff the handshake completes in time. Nothing is sent or read.
    Raises ValueError for an address that is not an IP literal.
    """
    addr = ipaddress.ip_address(ip)
    family = socket.AF_INET6 if addr.version == 6 else socket.AF_INET
    if timeout_ms <= 0:
        return False

    sock: Optional[socket.socket] = None
    try:
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.settimeout(min(timeout_ms / 1000.0, MAX_TIMEOUT_S))
        sock.connect((str(addr), port))
        return True
    except (socket.timeout, ConnectionRefusedError, OSError) as e:
        logger.debug("%s:%d not reachable: %s", ip, port, e)
        return False
    finally:
        if sock:
            sock.close()
