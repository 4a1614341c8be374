import copy
from typing import Any, Dict, List
from unittest import mock

from appgw.client import AzureCliClient

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000001"
RG = "rg-appgw-test"
SUBNET_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RG}/providers/Microsoft.Network"
    "/virtualNetworks/vnet-test/subnets/snet-appgw"
)
NSG_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RG}/providers/Microsoft.Network"
    "/networkSecurityGroups/nsg-appgw"
)
PIP_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RG}/providers/Microsoft.Network"
    "/publicIPAddresses/pip-test"
)
GATEWAY_ID = (
    f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{RG}/providers/Microsoft.Network"
    "/applicationGateways/appgw-test"
)

_DOCUMENT: Dict[str, Any] = {
    "Environment": "nonprod",
    "ResourceGroup": {"Name": RG, "Location": "australiaeast"},
    "VirtualNetwork": {
        "Name": "vnet-test",
        "AddressPrefix": "10.0.0.0/16",
        "SubnetName": "snet-appgw",
        "SubnetPrefix": "10.0.1.0/24",
    },
    "PublicIP": {"Name": "pip-test"},
    "ApplicationGateway": {
        "Name": "appgw-test",
        "Sku": {"Name": "Standard_v2", "Tier": "Standard_v2", "Capacity": 2},
    },
    "FrontendIPConfiguration": {"Name": "fe-public"},
    "FrontendPort": [{"Name": "port80", "Port": 80}, {"Name": "port443", "Port": 443}],
    "BackendAddressPools": [
        {
            "Name": "web-pool",
            "BackendAddresses": [{"IpAddress": "10.0.2.4"}, {"Fqdn": "web.internal"}],
        }
    ],
    "HealthProbes": [
        {
            "Name": "web-probe",
            "Protocol": "Http",
            "Host": "127.0.0.1",
            "Path": "/health",
            "Interval": 30,
            "Timeout": 30,
            "UnhealthyThreshold": 3,
            "MinServers": 0,
        }
    ],
    "BackendHttpSettings": [
        {
            "Name": "web-http",
            "Port": 80,
            "Protocol": "Http",
            "CookieBasedAffinity": "Disabled",
            "RequestTimeout": 30,
            "ProbeConfiguration": "web-probe",
        }
    ],
    "HttpListeners": [{"Name": "web-listener", "FrontendPort": "port80", "Protocol": "Http"}],
    "RequestRoutingRules": [
        {
            "Name": "web-rule",
            "RuleType": "Basic",
            "HttpListener": "web-listener",
            "BackendAddressPool": "web-pool",
            "BackendHttpSettings": "web-http",
            "Priority": 100,
        }
    ],
    "Tags": {"environment": "nonprod"},
}


def sample_document() -> Dict[str, Any]:
    return copy.deepcopy(_DOCUMENT)


def make_client() -> mock.Mock:
    """Client fake where every prerequisite exists and the gateway does not."""
    client = mock.Mock(spec=AzureCliClient)
    client.get_session.return_value = {"id": SUBSCRIPTION_ID, "name": "test-sub"}
    client.get_resource_group.return_value = {"name": RG, "location": "australiaeast"}
    client.get_virtual_network.return_value = {
        "name": "vnet-test",
        "subnets": [
            {"name": "snet-other", "id": SUBNET_ID.replace("snet-appgw", "snet-other")},
            {"name": "snet-appgw", "id": SUBNET_ID, "networkSecurityGroup": {"id": NSG_ID}},
        ],
    }
    client.get_network_security_group.return_value = {"name": "nsg-appgw", "securityRules": []}
    client.get_public_ip.return_value = {"name": "pip-test", "id": PIP_ID, "ipAddress": "20.1.2.3"}
    client.get_public_ip_by_id.return_value = client.get_public_ip.return_value
    client.get_application_gateway.return_value = None
    client.create_application_gateway.return_value = {"provisioningState": "Updating"}
    client.enable_diagnostics.return_value = {}
    return client


def gateway(state: str, **extra: Any) -> Dict[str, Any]:
    doc = {
        "name": "appgw-test",
        "resourceGroup": RG,
        "location": "australiaeast",
        "provisioningState": state,
    }
    doc.update(extra)
    return doc


class FakeClock:
    """Monotonic clock whose time only moves when sleep() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
