"""ARM resource id helpers."""

from __future__ import annotations

GATEWAY_TYPE = "Microsoft.Network/applicationGateways"


def gateway_resource_id(subscription_id: str, resource_group: str, name: str) -> str:
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/{GATEWAY_TYPE}/{name}"
    )


def child_id(gateway_id: str, collection: str, name: str) -> str:
    """Id of a gateway sub-resource, e.g. child_id(gw, "frontendPorts", "port80")."""
    return f"{gateway_id}/{collection}/{name}"


def name_from_id(resource_id: str) -> str:
    return resource_id.rstrip("/").rsplit("/", 1)[-1] if resource_id else ""
