"""
Deployment orchestration.

Session -> prerequisite checks -> existing gateway short-circuit -> resource
graph -> one create call -> optional diagnostics -> provisioning poll.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from appgw.errors import DeploymentError, ProvisioningFailure, ProvisioningTimeout
from appgw.iac_types import DeploymentConfig, DeploymentPlan, DeploymentResult
from appgw.logs import LOGGER_NAME
from appgw.stacks.gateway_stack import build_resource_set, gateway_request_body
from appgw.utils.azcli import CmdError
from appgw.utils.naming import gateway_resource_id
from appgw.utils.validation import PrerequisiteValidator, ResourceKind

POLL_INTERVAL_SECONDS = 30
DEFAULT_TIMEOUT_MINUTES = 30
TERMINAL_FAILURE_STATES = ("failed", "canceled")


class ProvisioningState(Enum):
    PENDING = "Pending"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @classmethod
    def from_resource(cls, resource: Optional[Dict[str, Any]]) -> "ProvisioningState":
        raw = provisioning_state_of(resource)
        if raw.lower() == "succeeded":
            return cls.SUCCEEDED
        if raw.lower() in TERMINAL_FAILURE_STATES:
            return cls.FAILED
        return cls.PENDING


def provisioning_state_of(resource: Optional[Dict[str, Any]]) -> str:
    # az CLI flattens properties; raw ARM responses nest them.
    if not resource:
        return ""
    return (
        resource.get("provisioningState")
        or (resource.get("properties") or {}).get("provisioningState")
        or ""
    )


class DeploymentOrchestrator:
    def __init__(
        self,
        client: Any,
        logger: Optional[logging.Logger] = None,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._log = logger or logging.getLogger(LOGGER_NAME)
        self._validator = PrerequisiteValidator(client, self._log)
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def _validate(self, config: DeploymentConfig) -> Tuple[str, str, str]:
        """Run prerequisite checks; return (subscription_id, subnet_id, public_ip_id)."""
        subscription_id = self._validator.require_session()
        rg = config.resource_group.name
        self._validator.require(ResourceKind.RESOURCE_GROUP, rg)
        _vnet, subnet = self._validator.require_network(
            rg, config.virtual_network.name, config.virtual_network.subnet_name
        )
        public_ip = self._validator.require(ResourceKind.PUBLIC_IP, config.public_ip.name, rg)
        return subscription_id, subnet["id"], public_ip["id"]

    def _existing(self, config: DeploymentConfig) -> Optional[Dict[str, Any]]:
        return self._validator.find(
            ResourceKind.APPLICATION_GATEWAY,
            config.application_gateway.name,
            config.resource_group.name,
        )

    def _body(
        self, config: DeploymentConfig, subscription_id: str, subnet_id: str, public_ip_id: str
    ) -> Tuple[str, Dict[str, Any]]:
        gateway_id = gateway_resource_id(
            subscription_id, config.resource_group.name, config.application_gateway.name
        )
        resources = build_resource_set(
            config,
            gateway_id=gateway_id,
            subnet_id=subnet_id,
            public_ip_id=public_ip_id,
            logger=self._log,
        )
        return gateway_id, gateway_request_body(config, resources)

    def plan(self, config: DeploymentConfig) -> DeploymentPlan:
        """Resolve the full request body without creating anything."""
        subscription_id, subnet_id, public_ip_id = self._validate(config)
        existing = self._existing(config)
        gateway_id, body = self._body(config, subscription_id, subnet_id, public_ip_id)
        return DeploymentPlan(gateway_id=gateway_id, body=body, existing=existing)

    def deploy(
        self, config: DeploymentConfig, timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES
    ) -> DeploymentResult:
        started = self._clock()
        gw_name = config.application_gateway.name
        rg = config.resource_group.name

        subscription_id, subnet_id, public_ip_id = self._validate(config)

        existing = self._existing(config)
        if existing is not None:
            self._log.info(
                "Application gateway '%s' already exists in '%s'; skipping creation", gw_name, rg
            )
            return self._result(config, existing, created=False, started=started)

        gateway_id, body = self._body(config, subscription_id, subnet_id, public_ip_id)

        self._log.info("Creating application gateway '%s' in '%s'", gw_name, config.resource_group.location)
        try:
            self._client.create_application_gateway(gateway_id, body)
        except CmdError as ex:
            self._log.error("[DEPLOY-001A] Create call for '%s' failed: %s", gw_name, ex)
            raise DeploymentError(
                f"Create call for application gateway '{gw_name}' failed: {ex}", code="DEPLOY-001A"
            ) from ex

        self._enable_diagnostics(config, gateway_id)

        gateway = self.wait_for_provisioning(rg, gw_name, timeout_minutes=timeout_minutes)
        result = self._result(config, gateway, created=True, started=started)
        self._log.info(
            "Application gateway '%s' provisioned in %.1f minute(s)",
            gw_name,
            result.elapsed_seconds / 60,
        )
        return result

    def _enable_diagnostics(self, config: DeploymentConfig, gateway_id: str) -> None:
        diag = config.diagnostics
        if diag is None or not diag.event_hub_name:
            self._log.info("Diagnostics not configured; skipping")
            return
        self._log.info("Enabling diagnostics to event hub '%s'", diag.event_hub_name)
        try:
            self._client.enable_diagnostics(
                gateway_id,
                setting_name=diag.setting_name,
                event_hub_name=diag.event_hub_name,
                authorization_rule_id=diag.authorization_rule_id,
            )
        except CmdError as ex:
            self._log.error("[DIAG-001A] Enabling diagnostics failed: %s", ex)
            raise DeploymentError(f"Enabling diagnostics failed: {ex}", code="DIAG-001A") from ex

    def wait_for_provisioning(
        self, resource_group: str, name: str, timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES
    ) -> Dict[str, Any]:
        """Poll the gateway until it reports Succeeded.

        A failed status query counts as still pending. Failed provisioning
        and running past the deadline both raise.
        """
        deadline = self._clock() + timeout_minutes * 60
        attempt = 0
        while True:
            attempt += 1
            gateway: Optional[Dict[str, Any]] = None
            try:
                gateway = self._client.get_application_gateway(resource_group, name)
            except (CmdError, ValueError) as ex:
                self._log.warning("Status query %d for '%s' failed: %s", attempt, name, ex)
            state = ProvisioningState.from_resource(gateway)
            self._log.info(
                "Poll %d: '%s' provisioning state %s",
                attempt,
                name,
                provisioning_state_of(gateway) or "unknown",
            )
            if state is ProvisioningState.SUCCEEDED:
                return gateway
            if state is ProvisioningState.FAILED:
                raw = provisioning_state_of(gateway)
                self._log.error("[DEPLOY-002A] Provisioning of '%s' ended in state %s", name, raw)
                raise ProvisioningFailure(
                    f"Provisioning of application gateway '{name}' failed (state {raw})"
                )
            if self._clock() >= deadline:
                self._log.error(
                    "[DEPLOY-003A] '%s' still pending after %s minute(s)", name, timeout_minutes
                )
                raise ProvisioningTimeout(
                    f"Application gateway '{name}' not provisioned within {timeout_minutes} minute(s)"
                )
            self._sleep(self._poll_interval)

    def _result(
        self, config: DeploymentConfig, gateway: Dict[str, Any], *, created: bool, started: float
    ) -> DeploymentResult:
        return DeploymentResult(
            name=gateway.get("name") or config.application_gateway.name,
            resource_group_name=gateway.get("resourceGroup") or config.resource_group.name,
            location=gateway.get("location") or config.resource_group.location,
            provisioning_state=provisioning_state_of(gateway),
            created=created,
            elapsed_seconds=self._clock() - started,
        )
