"""
SKU module.

Maps the SKU and autoscale sections onto their ARM shapes.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from appgw.iac_types import AutoscaleConfig, SkuConfig


def build_sku(cfg: SkuConfig) -> Dict[str, Any]:
    sku: Dict[str, Any] = {"name": cfg.name, "tier": cfg.tier}
    if cfg.capacity is not None:
        sku["capacity"] = cfg.capacity
    return sku


def build_autoscale_configuration(cfg: Optional[AutoscaleConfig]) -> Optional[Dict[str, Any]]:
    if cfg is None:
        return None
    autoscale: Dict[str, Any] = {"minCapacity": cfg.min_capacity}
    if cfg.max_capacity is not None:
        autoscale["maxCapacity"] = cfg.max_capacity
    return autoscale
