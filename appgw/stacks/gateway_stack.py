"""
Gateway stack assembly.

Wires the module builders together in dependency order and turns the result
into the ARM request body for the gateway. Each stage gets name indexes of
the stages before it, built once here and passed forward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from appgw.iac_types import DeploymentConfig
from appgw.logs import LOGGER_NAME
from appgw.modules.backend.backend import (
    build_backend_address_pools,
    build_backend_http_settings,
    build_health_probes,
)
from appgw.modules.frontend.frontend import (
    build_frontend_ip_configuration,
    build_frontend_ports,
    build_gateway_ip_configuration,
)
from appgw.modules.routing.routing import build_http_listeners, build_request_routing_rules
from appgw.modules.sku.sku import build_autoscale_configuration, build_sku


@dataclass(frozen=True)
class BuiltResourceSet:
    gateway_ip_configuration: Dict[str, Any]
    frontend_ip_configuration: Dict[str, Any]
    frontend_ports: List[Dict[str, Any]]
    backend_address_pools: List[Dict[str, Any]]
    probes: List[Dict[str, Any]]
    backend_http_settings: List[Dict[str, Any]]
    http_listeners: List[Dict[str, Any]]
    request_routing_rules: List[Dict[str, Any]]
    sku: Dict[str, Any]
    autoscale_configuration: Optional[Dict[str, Any]]

    def to_properties(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "sku": self.sku,
            "gatewayIPConfigurations": [self.gateway_ip_configuration],
            "frontendIPConfigurations": [self.frontend_ip_configuration],
            "frontendPorts": self.frontend_ports,
            "backendAddressPools": self.backend_address_pools,
            "probes": self.probes,
            "backendHttpSettingsCollection": self.backend_http_settings,
            "httpListeners": self.http_listeners,
            "requestRoutingRules": self.request_routing_rules,
        }
        if self.autoscale_configuration is not None:
            properties["autoscaleConfiguration"] = self.autoscale_configuration
        return properties


def index_by_name(descriptors: Sequence[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Map descriptor name -> descriptor; the first descriptor with a name wins."""
    index: Dict[str, Dict[str, Any]] = {}
    for d in descriptors:
        index.setdefault(d["name"], d)
    return index


def build_resource_set(
    config: DeploymentConfig,
    *,
    gateway_id: str,
    subnet_id: str,
    public_ip_id: Optional[str],
    logger: Optional[logging.Logger] = None,
) -> BuiltResourceSet:
    log = logger or logging.getLogger(LOGGER_NAME)
    fe_cfg = config.frontend_ip_configuration

    frontend_ip = build_frontend_ip_configuration(
        cfg=fe_cfg,
        public_ip_id=None if fe_cfg.is_private else public_ip_id,
        subnet_id=subnet_id if fe_cfg.is_private else None,
    )
    ports = build_frontend_ports(config.frontend_ports)
    pools = build_backend_address_pools(config.backend_address_pools)
    probes = build_health_probes(config.health_probes)
    settings = build_backend_http_settings(
        config.backend_http_settings,
        probes_by_name=index_by_name(probes),
        gateway_id=gateway_id,
        logger=log,
    )
    listeners = build_http_listeners(
        config.http_listeners,
        frontend_ip=frontend_ip,
        ports_by_name=index_by_name(ports),
        gateway_id=gateway_id,
    )
    rules = build_request_routing_rules(
        config.request_routing_rules,
        listeners_by_name=index_by_name(listeners),
        pools_by_name=index_by_name(pools),
        settings_by_name=index_by_name(settings),
        gateway_id=gateway_id,
    )

    resources = BuiltResourceSet(
        gateway_ip_configuration=build_gateway_ip_configuration(subnet_id=subnet_id),
        frontend_ip_configuration=frontend_ip,
        frontend_ports=ports,
        backend_address_pools=pools,
        probes=probes,
        backend_http_settings=settings,
        http_listeners=listeners,
        request_routing_rules=rules,
        sku=build_sku(config.application_gateway.sku),
        autoscale_configuration=build_autoscale_configuration(config.application_gateway.autoscale),
    )
    log.info(
        "Built %d port(s), %d pool(s), %d probe(s), %d HTTP setting(s), %d listener(s), %d rule(s)",
        len(ports),
        len(pools),
        len(probes),
        len(settings),
        len(listeners),
        len(rules),
    )
    return resources


def gateway_request_body(config: DeploymentConfig, resources: BuiltResourceSet) -> Dict[str, Any]:
    """Full ARM PUT body for the gateway."""
    return {
        "location": config.resource_group.location,
        "tags": dict(config.tags),
        "properties": resources.to_properties(),
    }
