from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from portal_web.config import AppConfig, EndpointConfig, load_config


@dataclass
class Endpoint:
    """Resolved endpoint with id, label and SPARQL URL."""

    id: str
    label: str
    sparql_url: str


def _to_endpoint(cfg: EndpointConfig) -> Endpoint:
    return Endpoint(id=cfg["id"], label=cfg["label"], sparql_url=cfg["sparql_url"])


def get_portal_endpoints(cfg: Optional[AppConfig] = None) -> List[Endpoint]:
    cfg = cfg or load_config()
    return [_to_endpoint(e) for e in cfg.portal_endpoints]


def get_default_portal_endpoint(cfg: Optional[AppConfig] = None) -> Optional[Endpoint]:
    """Return the first configured portal endpoint, or None if not configured."""
    endpoints = get_portal_endpoints(cfg)
    return endpoints[0] if endpoints else None


__all__ = [
    "Endpoint",
    "get_portal_endpoints",
    "get_default_portal_endpoint",
]
