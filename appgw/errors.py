"""
Deployment error taxonomy.

Every error carries a stable code of the form <STEP>-<NNN><SUFFIX> so a
failed run can be matched to the step that stopped it.
"""

from __future__ import annotations


class DeploymentError(Exception):
    code = "GEN-001A"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigError(DeploymentError):
    code = "CFG-004A"


class SessionError(DeploymentError):
    code = "CONN-001A"


class ResourceQueryError(DeploymentError):
    """A lookup against the control plane failed for a reason other than not-found."""


class PreconditionMissing(DeploymentError):
    """A resource the gateway depends on does not exist."""


class ShapeError(DeploymentError):
    code = "BUILD-001A"


class ReferenceResolutionError(DeploymentError):
    code = "BUILD-002A"

    def __init__(self, *, target_kind: str, target: str, referrer_kind: str, referrer: str) -> None:
        super().__init__(
            f"{referrer_kind} '{referrer}' references {target_kind} '{target}' which is not defined"
        )
        self.target_kind = target_kind
        self.target = target
        self.referrer_kind = referrer_kind
        self.referrer = referrer


class ProvisioningFailure(DeploymentError):
    code = "DEPLOY-002A"


class ProvisioningTimeout(DeploymentError):
    code = "DEPLOY-003A"
