"""
Config loader for per-environment JSON -> typed DeploymentConfig.

Pure helpers that turn the JSON document into frozen dataclasses. Missing
required sections are reported together before any cloud call is made.
Cross-section name references are NOT checked here; that happens when the
resource graph is built.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from appgw.errors import ConfigError
from appgw.iac_types import (
    AutoscaleConfig,
    BackendAddress,
    BackendPoolConfig,
    DeploymentConfig,
    DiagnosticsConfig,
    FrontendIPConfig,
    FrontendPortConfig,
    GatewayConfig,
    HealthProbeConfig,
    HttpListenerConfig,
    HttpSettingConfig,
    PublicIPConfig,
    ResourceGroupConfig,
    RoutingRuleConfig,
    SkuConfig,
    VirtualNetworkConfig,
)
from appgw.logs import LOGGER_NAME

REQUIRED_KEYS = [
    "Environment",
    "ResourceGroup",
    "VirtualNetwork",
    "ApplicationGateway",
    "PublicIP",
]
ENVIRONMENTS = ["nonprod", "prod"]
DEFAULT_FRONTEND_IP_NAME = "appGatewayFrontendIP"
DEFAULT_DIAGNOSTICS_SETTING = "appgw-diagnostics"


def _required(section: Mapping[str, Any], key: str, where: str) -> Any:
    if section.get(key) is None:
        raise ConfigError(f"Missing required field '{key}' in {where}")
    return section[key]


def _to_int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid int value in {where}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"Invalid int value in {where}: {value!r}") from ex


def _optional_int(value: Any, where: str) -> Optional[int]:
    return None if value is None else _to_int(value, where)


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where} must be a JSON object, got {type(value).__name__}")
    return value


def _section(document: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return _mapping(document.get(key), f"Section '{key}'")


def _sequence(document: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, Mapping) for v in value):
        raise ConfigError(f"Section '{key}' must be a list of JSON objects")
    return value


def missing_required_keys(document: Mapping[str, Any]) -> List[str]:
    """Return the required top-level keys absent from the document."""
    return [k for k in REQUIRED_KEYS if document.get(k) is None]


def normalize_frontend_ports(raw: Any) -> Tuple[FrontendPortConfig, ...]:
    """Accept a single port object or a list of them; always return a sequence."""
    if raw is None:
        return ()
    items = [raw] if isinstance(raw, Mapping) else raw
    if not isinstance(items, list) or not all(isinstance(i, Mapping) for i in items):
        raise ConfigError("FrontendPort must be an object or a list of objects")
    ports = []
    for item in items:
        name = _required(item, "Name", "FrontendPort")
        where = f"FrontendPort '{name}'"
        ports.append(FrontendPortConfig(name=name, port=_to_int(_required(item, "Port", where), where)))
    return tuple(ports)


def _probe_name(value: Any) -> Optional[str]:
    # Either the probe name itself or an object naming it.
    if value is None or isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        return value.get("ProbeName") or value.get("Name")
    raise ConfigError(f"Invalid ProbeConfiguration: {value!r}")


def _build_gateway(section: Mapping[str, Any]) -> GatewayConfig:
    name = _required(section, "Name", "ApplicationGateway")
    sku = _mapping(_required(section, "Sku", "ApplicationGateway"), "ApplicationGateway.Sku")
    autoscale = section.get("AutoscaleConfiguration")
    if autoscale is not None:
        autoscale = _mapping(autoscale, "AutoscaleConfiguration")
    return GatewayConfig(
        name=name,
        sku=SkuConfig(
            name=_required(sku, "Name", "ApplicationGateway.Sku"),
            tier=_required(sku, "Tier", "ApplicationGateway.Sku"),
            capacity=_optional_int(sku.get("Capacity"), "ApplicationGateway.Sku.Capacity"),
        ),
        autoscale=(
            AutoscaleConfig(
                min_capacity=_to_int(
                    _required(autoscale, "MinCapacity", "AutoscaleConfiguration"),
                    "AutoscaleConfiguration.MinCapacity",
                ),
                max_capacity=_optional_int(
                    autoscale.get("MaxCapacity"), "AutoscaleConfiguration.MaxCapacity"
                ),
            )
            if autoscale
            else None
        ),
    )


def _build_frontend_ip(section: Optional[Mapping[str, Any]]) -> FrontendIPConfig:
    section = _mapping(section, "FrontendIPConfiguration") if section is not None else {}
    return FrontendIPConfig(
        name=section.get("Name") or DEFAULT_FRONTEND_IP_NAME,
        type=section.get("Type") or "Public",
        private_ip_address=section.get("PrivateIPAddress"),
    )


def _build_pools(items: List[Mapping[str, Any]]) -> Tuple[BackendPoolConfig, ...]:
    pools = []
    for item in items:
        name = _required(item, "Name", "BackendAddressPools")
        where = f"BackendAddressPool '{name}'"
        raw = item.get("BackendAddresses") or []
        if not isinstance(raw, list):
            raise ConfigError(f"BackendAddresses in {where} must be a list")
        addresses = tuple(
            BackendAddress(ip_address=a.get("IpAddress"), fqdn=a.get("Fqdn"))
            for a in (_mapping(entry, f"Backend address in {where}") for entry in raw)
        )
        pools.append(BackendPoolConfig(name=name, addresses=addresses))
    return tuple(pools)


def _build_probes(items: List[Mapping[str, Any]]) -> Tuple[HealthProbeConfig, ...]:
    probes = []
    for item in items:
        name = _required(item, "Name", "HealthProbes")
        where = f"HealthProbe '{name}'"
        codes = _mapping(item.get("Match") or {}, f"Match in {where}").get("StatusCodes")
        if codes is not None and not isinstance(codes, list):
            raise ConfigError(f"Match.StatusCodes in {where} must be a list")
        probes.append(
            HealthProbeConfig(
                name=name,
                protocol=item.get("Protocol") or "Http",
                host=item.get("Host") or "127.0.0.1",
                path=item.get("Path") or "/",
                interval=_to_int(item.get("Interval", 30), where),
                timeout=_to_int(item.get("Timeout", 30), where),
                unhealthy_threshold=_to_int(item.get("UnhealthyThreshold", 3), where),
                min_servers=_to_int(item.get("MinServers", 0), where),
                status_codes=tuple(str(c) for c in codes) if codes else None,
            )
        )
    return tuple(probes)


def _build_http_settings(items: List[Mapping[str, Any]]) -> Tuple[HttpSettingConfig, ...]:
    settings = []
    for item in items:
        name = _required(item, "Name", "BackendHttpSettings")
        where = f"BackendHttpSettings '{name}'"
        settings.append(
            HttpSettingConfig(
                name=name,
                port=_to_int(_required(item, "Port", where), where),
                protocol=item.get("Protocol") or "Http",
                cookie_based_affinity=item.get("CookieBasedAffinity") or "Disabled",
                request_timeout=_to_int(item.get("RequestTimeout", 30), where),
                probe_name=_probe_name(item.get("ProbeConfiguration")),
            )
        )
    return tuple(settings)


def _build_listeners(items: List[Mapping[str, Any]]) -> Tuple[HttpListenerConfig, ...]:
    listeners = []
    for item in items:
        name = _required(item, "Name", "HttpListeners")
        listeners.append(
            HttpListenerConfig(
                name=name,
                frontend_port=_required(item, "FrontendPort", f"HttpListener '{name}'"),
                protocol=item.get("Protocol") or "Http",
                host_name=item.get("HostName"),
            )
        )
    return tuple(listeners)


def _build_rules(items: List[Mapping[str, Any]]) -> Tuple[RoutingRuleConfig, ...]:
    rules = []
    for item in items:
        name = _required(item, "Name", "RequestRoutingRules")
        where = f"RequestRoutingRule '{name}'"
        rules.append(
            RoutingRuleConfig(
                name=name,
                rule_type=item.get("RuleType") or "Basic",
                http_listener=_required(item, "HttpListener", where),
                backend_address_pool=_required(item, "BackendAddressPool", where),
                backend_http_settings=_required(item, "BackendHttpSettings", where),
                priority=_optional_int(item.get("Priority"), where),
            )
        )
    return tuple(rules)


def _build_diagnostics(section: Any) -> Optional[DiagnosticsConfig]:
    if section is None:
        return None
    section = _mapping(section, "Diagnostics")
    return DiagnosticsConfig(
        event_hub_name=section.get("EventHubName"),
        authorization_rule_id=section.get("EventHubAuthorizationRuleId"),
        setting_name=section.get("SettingName") or DEFAULT_DIAGNOSTICS_SETTING,
    )


def parse_deployment_config(
    document: Mapping[str, Any],
    *,
    environment: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> DeploymentConfig:
    log = logger or logging.getLogger(LOGGER_NAME)
    missing = missing_required_keys(document)
    if missing:
        raise ConfigError(
            "Missing required configuration keys: " + ", ".join(missing), code="CFG-003A"
        )

    env = str(document["Environment"])
    if environment and env.lower() != environment.lower():
        log.warning(
            "Config Environment '%s' does not match requested environment '%s'", env, environment
        )

    rg = _section(document, "ResourceGroup")
    vnet = _section(document, "VirtualNetwork")
    pip = _section(document, "PublicIP")
    raw_tags = _mapping(document.get("Tags") or {}, "Tags")
    tags: Dict[str, str] = {str(k): str(v) for k, v in raw_tags.items()}

    return DeploymentConfig(
        environment=env,
        resource_group=ResourceGroupConfig(
            name=_required(rg, "Name", "ResourceGroup"),
            location=_required(rg, "Location", "ResourceGroup"),
        ),
        virtual_network=VirtualNetworkConfig(
            name=_required(vnet, "Name", "VirtualNetwork"),
            address_prefix=vnet.get("AddressPrefix", ""),
            subnet_name=_required(vnet, "SubnetName", "VirtualNetwork"),
            subnet_prefix=vnet.get("SubnetPrefix", ""),
        ),
        public_ip=PublicIPConfig(name=_required(pip, "Name", "PublicIP")),
        application_gateway=_build_gateway(_section(document, "ApplicationGateway")),
        frontend_ip_configuration=_build_frontend_ip(document.get("FrontendIPConfiguration")),
        frontend_ports=normalize_frontend_ports(document.get("FrontendPort")),
        backend_address_pools=_build_pools(_sequence(document, "BackendAddressPools")),
        health_probes=_build_probes(_sequence(document, "HealthProbes")),
        backend_http_settings=_build_http_settings(_sequence(document, "BackendHttpSettings")),
        http_listeners=_build_listeners(_sequence(document, "HttpListeners")),
        request_routing_rules=_build_rules(_sequence(document, "RequestRoutingRules")),
        diagnostics=_build_diagnostics(document.get("Diagnostics")),
        tags=tags,
    )


def config_path(config_dir: Path, environment: str) -> Path:
    return config_dir / f"{environment}.json"


def read_config_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", code="CFG-001A")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as ex:
        raise ConfigError(f"Invalid JSON in {path}: {ex}", code="CFG-002A") from ex
    if not isinstance(document, dict):
        raise ConfigError(f"Config root in {path} must be a JSON object", code="CFG-002A")
    return document


def load_deployment_config(
    *, config_dir: Path, environment: str, logger: Optional[logging.Logger] = None
) -> DeploymentConfig:
    path = config_path(config_dir, environment)
    (logger or logging.getLogger(LOGGER_NAME)).info("Loading configuration from %s", path)
    return parse_deployment_config(
        read_config_document(path), environment=environment, logger=logger
    )
