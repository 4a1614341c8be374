"""
Routing module.

Builds HTTP listeners and request routing rules. Both resolve names against
sub-resources built earlier; a name that does not resolve stops the build.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from appgw.errors import ReferenceResolutionError
from appgw.iac_types import HttpListenerConfig, RoutingRuleConfig
from appgw.utils.naming import child_id


def _resolve(
    index: Mapping[str, Dict[str, Any]],
    name: str,
    *,
    target_kind: str,
    referrer_kind: str,
    referrer: str,
) -> Dict[str, Any]:
    found = index.get(name)
    if found is None:
        raise ReferenceResolutionError(
            target_kind=target_kind, target=name, referrer_kind=referrer_kind, referrer=referrer
        )
    return found


def build_http_listeners(
    listeners: Sequence[HttpListenerConfig],
    *,
    frontend_ip: Dict[str, Any],
    ports_by_name: Mapping[str, Dict[str, Any]],
    gateway_id: str,
) -> List[Dict[str, Any]]:
    built = []
    for listener in listeners:
        port = _resolve(
            ports_by_name,
            listener.frontend_port,
            target_kind="frontend port",
            referrer_kind="HTTP listener",
            referrer=listener.name,
        )
        properties: Dict[str, Any] = {
            "frontendIPConfiguration": {
                "id": child_id(gateway_id, "frontendIPConfigurations", frontend_ip["name"])
            },
            "frontendPort": {"id": child_id(gateway_id, "frontendPorts", port["name"])},
            "protocol": listener.protocol,
        }
        if listener.host_name:
            properties["hostName"] = listener.host_name
        built.append({"name": listener.name, "properties": properties})
    return built


def build_request_routing_rules(
    rules: Sequence[RoutingRuleConfig],
    *,
    listeners_by_name: Mapping[str, Dict[str, Any]],
    pools_by_name: Mapping[str, Dict[str, Any]],
    settings_by_name: Mapping[str, Dict[str, Any]],
    gateway_id: str,
) -> List[Dict[str, Any]]:
    built = []
    for rule in rules:
        listener = _resolve(
            listeners_by_name,
            rule.http_listener,
            target_kind="HTTP listener",
            referrer_kind="Request routing rule",
            referrer=rule.name,
        )
        pool = _resolve(
            pools_by_name,
            rule.backend_address_pool,
            target_kind="backend address pool",
            referrer_kind="Request routing rule",
            referrer=rule.name,
        )
        settings = _resolve(
            settings_by_name,
            rule.backend_http_settings,
            target_kind="backend HTTP settings",
            referrer_kind="Request routing rule",
            referrer=rule.name,
        )
        properties: Dict[str, Any] = {
            "ruleType": rule.rule_type,
            "httpListener": {"id": child_id(gateway_id, "httpListeners", listener["name"])},
            "backendAddressPool": {"id": child_id(gateway_id, "backendAddressPools", pool["name"])},
            "backendHttpSettings": {
                "id": child_id(gateway_id, "backendHttpSettingsCollection", settings["name"])
            },
        }
        if rule.priority is not None:
            properties["priority"] = rule.priority
        built.append({"name": rule.name, "properties": properties})
    return built
