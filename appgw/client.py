"""
Azure control-plane client backed by the az CLI.

Lookups return None when the resource does not exist and raise CmdError
for any other failure (transport, auth, throttling).
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from appgw.utils.azcli import CmdError, az, is_not_found

ARM_ENDPOINT = "https://management.azure.com"
GATEWAY_API_VERSION = "2023-09-01"

Runner = Callable[[List[str]], str]


class AzureCliClient:
    def __init__(self, runner: Runner = az) -> None:
        self._run = runner
        self.subscription_id: Optional[str] = None

    def _json(self, args: List[str]) -> Any:
        out = self._run([*args, "-o", "json"])
        if not out:
            return None
        try:
            return json.loads(out)
        except ValueError as ex:
            raise CmdError(f"Unparseable az output for {args[:3]}: {ex}", stderr=out) from ex

    def _show(self, args: List[str]) -> Optional[Dict[str, Any]]:
        try:
            return self._json(args)
        except CmdError as e:
            if is_not_found(e):
                return None
            raise

    def get_session(self) -> Optional[Dict[str, Any]]:
        """Active az account, or None when there is no logged-in context."""
        try:
            account = self._json(["account", "show"])
        except CmdError:
            return None
        if not account or not account.get("id"):
            return None
        self.subscription_id = account["id"]
        return account

    def get_resource_group(self, name: str) -> Optional[Dict[str, Any]]:
        return self._show(["group", "show", "--name", name])

    def get_virtual_network(self, resource_group: str, name: str) -> Optional[Dict[str, Any]]:
        return self._show(["network", "vnet", "show", "-g", resource_group, "-n", name])

    def get_public_ip(self, resource_group: str, name: str) -> Optional[Dict[str, Any]]:
        return self._show(["network", "public-ip", "show", "-g", resource_group, "-n", name])

    def get_public_ip_by_id(self, public_ip_id: str) -> Optional[Dict[str, Any]]:
        return self._show(["network", "public-ip", "show", "--ids", public_ip_id])

    def get_application_gateway(self, resource_group: str, name: str) -> Optional[Dict[str, Any]]:
        return self._show(
            ["network", "application-gateway", "show", "-g", resource_group, "-n", name]
        )

    def get_network_security_group(self, nsg_id: str) -> Optional[Dict[str, Any]]:
        return self._show(["network", "nsg", "show", "--ids", nsg_id])

    def create_application_gateway(self, gateway_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """PUT the full gateway descriptor; returns the (usually still updating) resource."""
        url = f"{ARM_ENDPOINT}{gateway_id}?api-version={GATEWAY_API_VERSION}"
        with tempfile.TemporaryDirectory() as t:
            body_file = Path(t) / "appgw.json"
            body_file.write_text(json.dumps(body), encoding="utf-8")
            return self._json(
                ["rest", "--method", "put", "--url", url, "--body", f"@{body_file}"]
            ) or {}

    def get_backend_health(self, resource_group: str, name: str) -> Dict[str, Any]:
        return self._json(
            ["network", "application-gateway", "show-backend-health", "-g", resource_group, "-n", name]
        ) or {}

    def enable_diagnostics(
        self,
        resource_id: str,
        *,
        setting_name: str,
        event_hub_name: str,
        authorization_rule_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        args = [
            "monitor",
            "diagnostic-settings",
            "create",
            "--name",
            setting_name,
            "--resource",
            resource_id,
            "--event-hub",
            event_hub_name,
            "--logs",
            json.dumps([{"categoryGroup": "allLogs", "enabled": True}]),
            "--metrics",
            json.dumps([{"category": "AllMetrics", "enabled": True}]),
        ]
        if authorization_rule_id:
            args.extend(["--event-hub-rule", authorization_rule_id])
        return self._json(args) or {}
