"""
Gateway status report.

Read-only: shapes the gateway descriptor and its backend health snapshot
into a StatusReport.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from appgw.iac_types import DeploymentConfig, PoolHealth, ServerHealth, StatusReport
from appgw.logs import LOGGER_NAME
from appgw.orchestrator import provisioning_state_of
from appgw.utils.naming import name_from_id
from appgw.utils.validation import PrerequisiteValidator, ResourceKind

HEALTHY = "Healthy"


def _props(resource: Dict[str, Any]) -> Dict[str, Any]:
    # az CLI output is flattened; raw ARM keeps fields under "properties".
    return resource.get("properties") or resource


def summarize_backend_health(health: Dict[str, Any]) -> List[PoolHealth]:
    """Per-pool server counts; anything other than Healthy counts as unhealthy."""
    pools: List[PoolHealth] = []
    for pool in health.get("backendAddressPools") or []:
        pool_name = name_from_id((pool.get("backendAddressPool") or {}).get("id", ""))
        servers: List[ServerHealth] = []
        for settings in pool.get("backendHttpSettingsCollection") or []:
            setting_name = name_from_id((settings.get("backendHttpSettings") or {}).get("id", ""))
            for server in settings.get("servers") or []:
                servers.append(
                    ServerHealth(
                        address=server.get("address", ""),
                        health=server.get("health", "Unknown"),
                        http_setting=setting_name,
                    )
                )
        healthy = sum(1 for s in servers if s.health == HEALTHY)
        pools.append(
            PoolHealth(
                pool_name=pool_name,
                healthy_servers=healthy,
                unhealthy_servers=len(servers) - healthy,
                servers=servers,
            )
        )
    return pools


class StatusReporter:
    def __init__(self, client: Any, logger: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._log = logger or logging.getLogger(LOGGER_NAME)
        self._validator = PrerequisiteValidator(client, self._log)

    def _frontend_ip_address(self, gateway: Dict[str, Any]) -> Optional[str]:
        configs = _props(gateway).get("frontendIPConfigurations") or []
        for fe in configs:
            fe_props = _props(fe)
            public_ref = fe_props.get("publicIPAddress") or {}
            if public_ref.get("id"):
                pip = self._client.get_public_ip_by_id(public_ref["id"])
                if pip:
                    return _props(pip).get("ipAddress")
            if fe_props.get("privateIPAddress"):
                return fe_props["privateIPAddress"]
        return None

    def get_status(self, config: DeploymentConfig) -> Optional[StatusReport]:
        """StatusReport for the configured gateway, or None when it does not exist."""
        self._validator.require_session()
        rg = config.resource_group.name
        name = config.application_gateway.name
        gateway = self._validator.find(ResourceKind.APPLICATION_GATEWAY, name, rg)
        if gateway is None:
            return None

        self._log.info("Fetching backend health for '%s'", name)
        backend_health = summarize_backend_health(self._client.get_backend_health(rg, name))
        return StatusReport(
            name=gateway.get("name", name),
            resource_group=gateway.get("resourceGroup", rg),
            location=gateway.get("location", config.resource_group.location),
            provisioning_state=provisioning_state_of(gateway),
            operational_state=_props(gateway).get("operationalState", ""),
            frontend_ip_address=self._frontend_ip_address(gateway),
            backend_health=backend_health,
        )
