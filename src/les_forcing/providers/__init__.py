"""
Force provider registry.

Usage:
    from les_forcing.providers import create_provider
    provider = create_provider("body_force", fx=1.0)
"""

from typing import Any, Mapping

from les_forcing.providers.base import FlowState, ForceProvider
from les_forcing.providers.body_force import BodyForce
from les_forcing.providers.solid_mask import MaskRelaxation, SolidMaskForce

_REGISTRY: dict[str, type[ForceProvider]] = {
    "body_force": BodyForce,
    "solid_mask": SolidMaskForce,
    "mask_relaxation": MaskRelaxation,
}


def create_provider(name: str, **params: Any) -> ForceProvider:
    """Factory: instantiate a force provider by config name."""
    key = name.lower()
    cls = _REGISTRY.get(key)
    if cls is None:
        supported = ", ".join(sorted(_REGISTRY))
        raise ValueError(
            f"Unknown force provider '{name}'. Supported: {supported}"
        )
    return cls(**params)


def providers_from_config(entries: list[Mapping[str, Any]] | None) -> list[ForceProvider]:
    """Build providers from config entries like {"type": "body_force", "fx": 1.0}."""
    providers = []
    for i, entry in enumerate(entries or []):
        params = {k: v for k, v in dict(entry).items() if not str(k).startswith("_")}
        if "type" not in params:
            raise ValueError(f"Provider entry {i} is missing 'type'")
        name = params.pop("type")
        try:
            providers.append(create_provider(name, **params))
        except TypeError as exc:
            raise ValueError(f"Bad parameters for provider '{name}': {exc}") from exc
    return providers


__all__ = [
    "FlowState",
    "ForceProvider",
    "create_provider",
    "providers_from_config",
    "BodyForce",
    "SolidMaskForce",
    "MaskRelaxation",
]
