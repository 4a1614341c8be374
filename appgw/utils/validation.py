"""
Preflight validation.

Checks that the resources the gateway depends on exist before anything is
created. Every check logs one line; a failed check raises a coded error and
nothing after it runs.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from appgw.errors import PreconditionMissing, ResourceQueryError, SessionError
from appgw.logs import LOGGER_NAME
from appgw.utils.azcli import CmdError


class ResourceKind(Enum):
    RESOURCE_GROUP = "RG"
    VIRTUAL_NETWORK = "VNET"
    PUBLIC_IP = "PIP"
    APPLICATION_GATEWAY = "AGW"

    @property
    def label(self) -> str:
        return {
            "RG": "Resource group",
            "VNET": "Virtual network",
            "PIP": "Public IP address",
            "AGW": "Application gateway",
        }[self.value]


def format_missing_keys_message(missing: List[str], path: str) -> str:
    """Format an actionable message for a config file missing required sections."""
    if not missing:
        return ""
    lines: List[str] = [f"Config file {path} is missing required sections:"]
    for k in missing:
        lines.append(f"  - {k}")
    return "\n".join(lines)


class PrerequisiteValidator:
    def __init__(self, client: Any, logger: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._log = logger or logging.getLogger(LOGGER_NAME)

    def require_session(self) -> str:
        """Return the active subscription id or raise SessionError."""
        account = self._client.get_session()
        if not account:
            self._log.error("[CONN-001A] No active Azure session; run 'az login'")
            raise SessionError("No active Azure session; run 'az login'")
        self._log.info(
            "Azure session active: subscription %s (%s)", account.get("name", "?"), account["id"]
        )
        return account["id"]

    def _lookup(
        self, kind: ResourceKind, name: str, resource_group: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        try:
            if kind is ResourceKind.RESOURCE_GROUP:
                return self._client.get_resource_group(name)
            if kind is ResourceKind.VIRTUAL_NETWORK:
                return self._client.get_virtual_network(resource_group, name)
            if kind is ResourceKind.PUBLIC_IP:
                return self._client.get_public_ip(resource_group, name)
            return self._client.get_application_gateway(resource_group, name)
        except CmdError as ex:
            code = f"{kind.value}-001A"
            self._log.error("[%s] Failed to query %s '%s': %s", code, kind.label.lower(), name, ex)
            raise ResourceQueryError(
                f"Failed to query {kind.label.lower()} '{name}': {ex}", code=code
            ) from ex

    def find(
        self, kind: ResourceKind, name: str, resource_group: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Descriptor of the resource, or None when it does not exist."""
        found = self._lookup(kind, name, resource_group)
        self._log.info("%s '%s': %s", kind.label, name, "found" if found else "not found")
        return found

    def resource_exists(
        self, kind: ResourceKind, name: str, resource_group: Optional[str] = None
    ) -> bool:
        return self.find(kind, name, resource_group) is not None

    def require(
        self, kind: ResourceKind, name: str, resource_group: Optional[str] = None
    ) -> Dict[str, Any]:
        found = self._lookup(kind, name, resource_group)
        if not found:
            code = f"{kind.value}-002A"
            where = f" in resource group '{resource_group}'" if resource_group else ""
            self._log.error("[%s] %s '%s' not found%s", code, kind.label, name, where)
            raise PreconditionMissing(f"{kind.label} '{name}' not found{where}", code=code)
        self._log.info("%s '%s' exists", kind.label, name)
        return found

    def require_subnet(
        self, vnet: Mapping[str, Any], subnet_name: str
    ) -> Dict[str, Any]:
        """Find the subnet inside an already fetched virtual network."""
        vnet_name = vnet.get("name", "?")
        for subnet in vnet.get("subnets") or []:
            if subnet.get("name") == subnet_name:
                self._log.info("Subnet '%s' exists in virtual network '%s'", subnet_name, vnet_name)
                return subnet
        self._log.error(
            "[VNET-003A] Subnet '%s' not found in virtual network '%s'", subnet_name, vnet_name
        )
        raise PreconditionMissing(
            f"Subnet '{subnet_name}' not found in virtual network '{vnet_name}'", code="VNET-003A"
        )

    def check_subnet_nsg(self, subnet: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Log the network security group attached to the subnet, if any."""
        nsg_ref = subnet.get("networkSecurityGroup") or {}
        nsg_id = nsg_ref.get("id")
        if not nsg_id:
            self._log.warning("Subnet '%s' has no network security group attached", subnet.get("name"))
            return None
        try:
            nsg = self._client.get_network_security_group(nsg_id)
        except CmdError as ex:
            self._log.warning("Could not read network security group %s: %s", nsg_id, ex)
            return None
        if nsg is None:
            self._log.warning("Network security group %s referenced by subnet does not exist", nsg_id)
            return None
        self._log.info(
            "Subnet '%s' uses network security group '%s' (%d rule(s))",
            subnet.get("name"),
            nsg.get("name"),
            len(nsg.get("securityRules") or []),
        )
        return nsg

    def require_network(
        self, resource_group: str, vnet_name: str, subnet_name: str
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        vnet = self.require(ResourceKind.VIRTUAL_NETWORK, vnet_name, resource_group)
        subnet = self.require_subnet(vnet, subnet_name)
        self.check_subnet_nsg(subnet)
        return vnet, subnet
