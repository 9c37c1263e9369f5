"""
Utilities for checking whether host ports can be published.
"""
import socket
from typing import Iterable, List


def is_port_free(port: int, host: str = "") -> bool:
    """
    Checks if a TCP port can be bound on the host.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def busy_ports(ports: Iterable[int]) -> List[int]:
    """
    Returns the ports among `ports` that are already bound, sorted.
    """
    return sorted(p for p in set(ports) if not is_port_free(p))
