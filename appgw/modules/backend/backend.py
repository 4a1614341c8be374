"""
Backend module.

Builds backend address pools, health probes and backend HTTP settings.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from appgw.iac_types import BackendPoolConfig, HealthProbeConfig, HttpSettingConfig
from appgw.logs import LOGGER_NAME
from appgw.utils.naming import child_id


def build_backend_address_pools(pools: Sequence[BackendPoolConfig]) -> List[Dict[str, Any]]:
    built = []
    for pool in pools:
        addresses = []
        for entry in pool.addresses:
            if entry.ip_address:
                addresses.append({"ipAddress": entry.ip_address})
            elif entry.fqdn:
                addresses.append({"fqdn": entry.fqdn})
            # entries with neither are dropped
        built.append({"name": pool.name, "properties": {"backendAddresses": addresses}})
    return built


def build_health_probes(probes: Sequence[HealthProbeConfig]) -> List[Dict[str, Any]]:
    built = []
    for probe in probes:
        properties: Dict[str, Any] = {
            "protocol": probe.protocol,
            "host": probe.host,
            "path": probe.path,
            "interval": probe.interval,
            "timeout": probe.timeout,
            "unhealthyThreshold": probe.unhealthy_threshold,
            "minServers": probe.min_servers,
            "pickHostNameFromBackendHttpSettings": False,
        }
        if probe.status_codes:
            properties["match"] = {"statusCodes": list(probe.status_codes)}
        built.append({"name": probe.name, "properties": properties})
    return built


def build_backend_http_settings(
    settings: Sequence[HttpSettingConfig],
    *,
    probes_by_name: Mapping[str, Dict[str, Any]],
    gateway_id: str,
    logger: logging.Logger | None = None,
) -> List[Dict[str, Any]]:
    """Build HTTP settings, linking each to its probe when the probe exists.

    A probe name that does not resolve is logged and the setting is built
    without a probe.
    """
    log = logger or logging.getLogger(LOGGER_NAME)
    built = []
    for setting in settings:
        properties: Dict[str, Any] = {
            "port": setting.port,
            "protocol": setting.protocol,
            "cookieBasedAffinity": setting.cookie_based_affinity,
            "requestTimeout": setting.request_timeout,
        }
        if setting.probe_name:
            probe = probes_by_name.get(setting.probe_name)
            if probe is None:
                log.warning(
                    "Health probe '%s' referenced by backend HTTP settings '%s' not found; continuing without a probe",
                    setting.probe_name,
                    setting.name,
                )
            else:
                properties["probe"] = {"id": child_id(gateway_id, "probes", probe["name"])}
        built.append({"name": setting.name, "properties": properties})
    return built
