"""Open a tunnel to a service running in the cluster."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

ZARF_NAMESPACE = "zarf"
SVC_RESOURCE = "svc"


class Tunnel(Protocol):
    """The tunnel operations the connect command uses."""

    def enable_auto_open(self) -> None: ...

    def connect(self, target: str, blocking: bool) -> Any: ...


# tunnel_factory(namespace, resource_type, resource_name, local_port, remote_port) -> a tunnel.
TunnelFactory = Callable[[str, str, str, int, int], Tunnel]


@dataclass
class ConnectOptions:
    """Where the tunnel goes and how it behaves."""

    name: str = ""
    namespace: str = ZARF_NAMESPACE
    resource_type: str = SVC_RESOURCE
    local_port: int = 0
    remote_port: int = 0
    cli_only: bool = False


def connect(options: ConnectOptions, target: str, tunnel_factory: TunnelFactory) -> Any:
    """Create a tunnel and connect it to the target, opening a browser unless CLI-only.

    Returns what the tunnel's connect call returns.
    """
    try:
        tunnel = tunnel_factory(
            options.namespace,
            options.resource_type,
            options.name,
            options.local_port,
            options.remote_port,
        )
    except Exception as err:
        raise ConnectionError(f"Failed to create the tunnel: {err}") from err
    if not options.cli_only:
        tunnel.enable_auto_open()
    return tunnel.connect(target or "", True)