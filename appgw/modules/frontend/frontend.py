"""
Frontend module.

Builds the gateway IP configuration (the subnet the gateway instances live
in), the frontend IP configuration and the frontend ports.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from appgw.errors import ShapeError
from appgw.iac_types import FrontendIPConfig, FrontendPortConfig

GATEWAY_IP_CONFIG_NAME = "appGatewayIpConfig"


def build_gateway_ip_configuration(*, subnet_id: str) -> Dict[str, Any]:
    return {"name": GATEWAY_IP_CONFIG_NAME, "properties": {"subnet": {"id": subnet_id}}}


def build_frontend_ip_configuration(
    *,
    cfg: FrontendIPConfig,
    public_ip_id: Optional[str] = None,
    subnet_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Bind the frontend to exactly one of a public IP or a subnet address."""
    if public_ip_id and subnet_id:
        raise ShapeError(
            f"Frontend IP configuration '{cfg.name}' was given both a public IP and a subnet; supply exactly one"
        )
    if not public_ip_id and not subnet_id:
        raise ShapeError(
            f"Frontend IP configuration '{cfg.name}' needs either a public IP or a subnet"
        )

    if public_ip_id:
        properties: Dict[str, Any] = {"publicIPAddress": {"id": public_ip_id}}
    else:
        properties = {"subnet": {"id": subnet_id}}
        if cfg.private_ip_address:
            properties["privateIPAddress"] = cfg.private_ip_address
            properties["privateIPAllocationMethod"] = "Static"
        else:
            properties["privateIPAllocationMethod"] = "Dynamic"
    return {"name": cfg.name, "properties": properties}


def build_frontend_ports(ports: Sequence[FrontendPortConfig]) -> List[Dict[str, Any]]:
    return [{"name": p.name, "properties": {"port": p.port}} for p in ports]
