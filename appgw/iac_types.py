from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ResourceGroupConfig:
    name: str
    location: str


@dataclass(frozen=True)
class VirtualNetworkConfig:
    name: str
    address_prefix: str
    subnet_name: str
    subnet_prefix: str


@dataclass(frozen=True)
class PublicIPConfig:
    name: str


@dataclass(frozen=True)
class SkuConfig:
    name: str  # Standard_v2 / WAF_v2
    tier: str
    capacity: Optional[int]


@dataclass(frozen=True)
class AutoscaleConfig:
    min_capacity: int
    max_capacity: Optional[int]


@dataclass(frozen=True)
class GatewayConfig:
    name: str
    sku: SkuConfig
    autoscale: Optional[AutoscaleConfig]


@dataclass(frozen=True)
class FrontendIPConfig:
    name: str
    type: str  # Public or Private
    private_ip_address: Optional[str]

    @property
    def is_private(self) -> bool:
        return self.type.lower() == "private"


@dataclass(frozen=True)
class FrontendPortConfig:
    name: str
    port: int


@dataclass(frozen=True)
class BackendAddress:
    ip_address: Optional[str]
    fqdn: Optional[str]


@dataclass(frozen=True)
class BackendPoolConfig:
    name: str
    addresses: Tuple[BackendAddress, ...]


@dataclass(frozen=True)
class HealthProbeConfig:
    name: str
    protocol: str
    host: str
    path: str
    interval: int
    timeout: int
    unhealthy_threshold: int
    min_servers: int
    status_codes: Optional[Tuple[str, ...]]


@dataclass(frozen=True)
class HttpSettingConfig:
    name: str
    port: int
    protocol: str
    cookie_based_affinity: str  # Enabled or Disabled
    request_timeout: int
    probe_name: Optional[str]


@dataclass(frozen=True)
class HttpListenerConfig:
    name: str
    frontend_port: str
    protocol: str
    host_name: Optional[str]


@dataclass(frozen=True)
class RoutingRuleConfig:
    name: str
    rule_type: str
    http_listener: str
    backend_address_pool: str
    backend_http_settings: str
    priority: Optional[int]


@dataclass(frozen=True)
class DiagnosticsConfig:
    event_hub_name: Optional[str]
    authorization_rule_id: Optional[str]
    setting_name: str


@dataclass(frozen=True)
class DeploymentConfig:
    environment: str
    resource_group: ResourceGroupConfig
    virtual_network: VirtualNetworkConfig
    public_ip: PublicIPConfig
    application_gateway: GatewayConfig
    frontend_ip_configuration: FrontendIPConfig
    frontend_ports: Tuple[FrontendPortConfig, ...]
    backend_address_pools: Tuple[BackendPoolConfig, ...]
    health_probes: Tuple[HealthProbeConfig, ...]
    backend_http_settings: Tuple[HttpSettingConfig, ...]
    http_listeners: Tuple[HttpListenerConfig, ...]
    request_routing_rules: Tuple[RoutingRuleConfig, ...]
    diagnostics: Optional[DiagnosticsConfig]
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeploymentResult:
    name: str
    resource_group_name: str
    location: str
    provisioning_state: str
    created: bool
    elapsed_seconds: float


@dataclass(frozen=True)
class DeploymentPlan:
    gateway_id: str
    body: Dict[str, Any]
    existing: Optional[Dict[str, Any]]


@dataclass(frozen=True)
class ServerHealth:
    address: str
    health: str
    http_setting: str


@dataclass(frozen=True)
class PoolHealth:
    pool_name: str
    healthy_servers: int
    unhealthy_servers: int
    servers: List[ServerHealth]


@dataclass(frozen=True)
class StatusReport:
    name: str
    resource_group: str
    location: str
    provisioning_state: str
    operational_state: str
    frontend_ip_address: Optional[str]
    backend_health: List[PoolHealth]
