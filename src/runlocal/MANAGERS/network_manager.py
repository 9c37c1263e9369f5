"""
Network management for a local run: port resolution and publication.
"""
from typing import Callable, Dict, List

from ..MODELS.run_config import PortOverride
from ..MODELS.task_descriptor import TaskDescriptor
from ..UTILS.port_finder import busy_ports


class NetworkManager:
    """
    Resolves which host ports the pause container publishes.
    All containers share the pause container's network namespace, so every
    port of every container is published once, on the pause container.
    """
    def __init__(self, port_checker: Callable[[List[int]], List[int]] = busy_ports):
        """
        :param port_checker: Returns the host ports that are already in use.
        """
        self.port_checker = port_checker

    def resolve_ports(self,
                      descriptor: TaskDescriptor,
                      overrides: List[PortOverride]) -> Dict[str, str]:
        """
        Maps container ports to host ports; overrides win.

        :return: {container_port: host_port}
        """
        ports: Dict[str, str] = {}
        for container in descriptor.containers:
            for mapping in container.port_mappings:
                host = mapping.host_port if mapping.host_port is not None else mapping.container_port
                if host is None:
                    continue
                ctr = mapping.container_port if mapping.container_port is not None else host
                ports[str(ctr)] = str(host)
        for override in overrides:
            ports[override.container_port] = override.host_port
        return ports

    @staticmethod
    def published_ports(ports: Dict[str, str]) -> Dict[str, str]:
        """
        Flips {container: host} into the {host: container} form docker publishes.
        """
        return {host: ctr for ctr, host in ports.items()}

    def warn_busy_ports(self, ports: Dict[str, str]) -> List[int]:
        """
        Prints a warning for every host port that is already bound.

        :return: The busy host ports.
        """
        busy = self.port_checker([int(h) for h in ports.values()])
        for port in busy:
            print(f"[network] Warning: host port {port} is already in use, publishing it will fail")
        return busy
