"""Kind and icon lookup tables used while building the containment tree.

The tables are plain data held by a frozen `KindCatalog`. A catalog is
loaded once (defaults below, or a YAML override via `load_catalog`) and
passed into the resolver, so tests can swap in fixture mappings.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import yaml

_ARCH = "Architecture-Service-Icons_07312025"
_RES = "Resource-Icons_07312025"
_GENERAL = f"{_RES}/Res_General-Icons/Res_48_Light"

ICON_MAP: Dict[str, str] = {
    # compute
    "ecs-fargate": f"{_ARCH}/Arch_Containers/48/Arch_Amazon-Elastic-Container-Service_48.svg",
    "eks": f"{_ARCH}/Arch_Containers/48/Arch_Amazon-Elastic-Kubernetes-Service_48.svg",
    "lambda": f"{_ARCH}/Arch_Compute/48/Arch_AWS-Lambda_48.svg",
    "ec2": f"{_RES}/Res_Compute/Res_Amazon-EC2_Instance_48.svg",
    # generic application types
    "frontend": f"{_GENERAL}/Res_Client_48_Light.svg",
    "backend": f"{_ARCH}/Arch_Compute/48/Arch_AWS-Lambda_48.svg",
    "microservice": f"{_ARCH}/Arch_Compute/48/Arch_AWS-Lambda_48.svg",
    "api": f"{_ARCH}/Arch_Networking-Content-Delivery/48/Arch_Amazon-API-Gateway_48.svg",
    "database": f"{_ARCH}/Arch_Database/48/Arch_Amazon-RDS_48.svg",
    # database
    "rds-postgres": f"{_ARCH}/Arch_Database/48/Arch_Amazon-RDS_48.svg",
    "rds-aurora-postgres": f"{_ARCH}/Arch_Database/48/Arch_Amazon-Aurora_48.svg",
    "dynamodb": f"{_ARCH}/Arch_Database/48/Arch_Amazon-DynamoDB_48.svg",
    "elasticache-redis": f"{_ARCH}/Arch_Database/48/Arch_Amazon-ElastiCache_48.svg",
    # networking
    "vpc": f"{_ARCH}/Arch_Networking-Content-Delivery/48/Arch_Amazon-Virtual-Private-Cloud_48.svg",
    "subnet": f"{_RES}/Res_Networking-Content-Delivery/Res_Amazon-VPC_Subnet-Private_48.svg",
    "application-load-balancer": f"{_RES}/Res_Networking-Content-Delivery/Res_Elastic-Load-Balancing_Application-Load-Balancer_48.svg",
    "alb": f"{_RES}/Res_Networking-Content-Delivery/Res_Elastic-Load-Balancing_Application-Load-Balancer_48.svg",
    "nat-gateway": f"{_RES}/Res_Networking-Content-Delivery/Res_Amazon-VPC_NAT-Gateway_48.svg",
    "api-gateway-rest": f"{_ARCH}/Arch_Networking-Content-Delivery/48/Arch_Amazon-API-Gateway_48.svg",
    "cdn": f"{_ARCH}/Arch_Networking-Content-Delivery/48/Arch_Amazon-CloudFront_48.svg",
    "cloudfront": f"{_ARCH}/Arch_Networking-Content-Delivery/48/Arch_Amazon-CloudFront_48.svg",
    "internet": f"{_GENERAL}/Res_Internet_48_Light.svg",
    # integration
    "sqs": f"{_ARCH}/Arch_App-Integration/48/Arch_Amazon-Simple-Queue-Service_48.svg",
    "sns": f"{_ARCH}/Arch_App-Integration/48/Arch_Amazon-Simple-Notification-Service_48.svg",
    "kinesis-streams": f"{_ARCH}/Arch_Analytics/48/Arch_Amazon-Kinesis-Data-Streams_48.svg",
    # storage
    "s3": f"{_ARCH}/Arch_Storage/48/Arch_Amazon-Simple-Storage-Service_48.svg",
    # security & management
    "security-group": f"{_ARCH}/Arch_Security-Identity-Compliance/48/Arch_AWS-Identity-and-Access-Management_48.svg",
    "waf": f"{_ARCH}/Arch_Security-Identity-Compliance/48/Arch_AWS-WAF_48.svg",
    "guardduty": f"{_ARCH}/Arch_Security-Identity-Compliance/48/Arch_Amazon-GuardDuty_48.svg",
    "secrets-manager": f"{_ARCH}/Arch_Security-Identity-Compliance/48/Arch_AWS-Secrets-Manager_48.svg",
    "cloudwatch": f"{_ARCH}/Arch_Management-Governance/48/Arch_Amazon-CloudWatch_48.svg",
    # devtools
    "codepipeline": f"{_ARCH}/Arch_Developer-Tools/48/Arch_AWS-CodePipeline_48.svg",
    "codebuild": f"{_ARCH}/Arch_Developer-Tools/48/Arch_AWS-CodeBuild_48.svg",
    # users and clients
    "user": f"{_GENERAL}/Res_User_48_Light.svg",
    "users": f"{_GENERAL}/Res_Users_48_Light.svg",
    "client": f"{_GENERAL}/Res_Client_48_Light.svg",
    "mobile": f"{_GENERAL}/Res_Mobile-client_48_Light.svg",
    # domain specific
    "payment": f"{_GENERAL}/Res_Multimedia_48_Light.svg",
    "notification": f"{_GENERAL}/Res_Email_48_Light.svg",
    "email": f"{_GENERAL}/Res_Email_48_Light.svg",
    "analytics": f"{_GENERAL}/Res_Metrics_48_Light.svg",
    "ml": f"{_ARCH}/Arch_Artificial-Intelligence/48/Arch_Amazon-SageMaker_48.svg",
}

# Technology keyword -> ICON_MAP key.  Checked in order; first substring match wins.
_TECHNOLOGY_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("react", "frontend"),
    ("vue", "frontend"),
    ("angular", "frontend"),
    ("node", "backend"),
    ("java", "backend"),
    ("python", "backend"),
)

# Endpoint id keyword -> ICON_MAP key for undeclared connection endpoints.
_ENDPOINT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("user", "user"),
    ("client", "client"),
    ("frontend", "frontend"),
    ("backend", "backend"),
)

_SIZES: Dict[str, Tuple[float, float]] = {
    "leaf": (80.0, 80.0),
    "external": (80.0, 80.0),
    "boundary": (400.0, 400.0),
    "zone": (300.0, 300.0),
    "subnet": (250.0, 250.0),
    "compute": (300.0, 250.0),
    "group": (400.0, 300.0),
}


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class KindCatalog:
    icons: Mapping[str, str] = field(default_factory=lambda: _frozen(ICON_MAP))
    boundary_kinds: FrozenSet[str] = frozenset({"vpc"})
    subnet_kinds: FrozenSet[str] = frozenset({"subnet"})
    compute_kinds: FrozenSet[str] = frozenset({"ecs-fargate", "eks", "ecs", "ec2"})
    external_kinds: FrozenSet[str] = frozenset({"user", "users", "client", "internet", "browser", "mobile"})
    technology_keywords: Tuple[Tuple[str, str], ...] = _TECHNOLOGY_KEYWORDS
    endpoint_keywords: Tuple[Tuple[str, str], ...] = _ENDPOINT_KEYWORDS
    default_endpoint_icon: str = "internet"
    service_fallback_icon: str = "backend"
    application_fallback_icon: str = "microservice"
    sizes: Mapping[str, Tuple[float, float]] = field(default_factory=lambda: _frozen(_SIZES))

    def icon(self, key: Optional[str]) -> Optional[str]:
        """Icon reference for *key*, or None if the key is unknown."""
        if not key:
            return None
        return self.icons.get(key)

    def size(self, category: str) -> Tuple[float, float]:
        return self.sizes.get(category) or self.sizes["leaf"]

    def is_boundary(self, kind: str) -> bool:
        return kind.lower() in self.boundary_kinds

    def is_subnet(self, kind: str) -> bool:
        return kind.lower() in self.subnet_kinds

    def is_compute(self, kind: str) -> bool:
        return kind.lower() in self.compute_kinds

    def is_external(self, kind: str) -> bool:
        return kind.lower() in self.external_kinds

    def technology_icon(self, technology: Optional[str]) -> Optional[str]:
        tech = (technology or "").lower()
        if not tech:
            return None
        for keyword, key in self.technology_keywords:
            if keyword in tech:
                return self.icon(key)
        return None

    def endpoint_icon(self, endpoint_id: str) -> Optional[str]:
        lowered = endpoint_id.lower()
        for keyword, key in self.endpoint_keywords:
            if keyword in lowered:
                return self.icon(key)
        return self.icon(self.default_endpoint_icon)


DEFAULT_CATALOG = KindCatalog()


def _pairs(raw: Any) -> Tuple[Tuple[str, str], ...]:
    if isinstance(raw, dict):
        return tuple((str(k), str(v)) for k, v in raw.items())
    return tuple((str(k), str(v)) for k, v in raw)


def catalog_from_mapping(data: Mapping[str, Any], base: KindCatalog = DEFAULT_CATALOG) -> KindCatalog:
    """Overlay *data* on *base*. Icon and size tables are merged, the rest replaced."""
    changes: Dict[str, Any] = {}
    if "icons" in data:
        changes["icons"] = _frozen({**base.icons, **data["icons"]})
    if "sizes" in data:
        merged = dict(base.sizes)
        merged.update({k: (float(v[0]), float(v[1])) for k, v in data["sizes"].items()})
        changes["sizes"] = _frozen(merged)
    for key in ("boundary_kinds", "subnet_kinds", "compute_kinds", "external_kinds"):
        if key in data:
            changes[key] = frozenset(str(k).lower() for k in data[key])
    for key in ("technology_keywords", "endpoint_keywords"):
        if key in data:
            changes[key] = _pairs(data[key])
    for key in ("default_endpoint_icon", "service_fallback_icon", "application_fallback_icon"):
        if key in data:
            changes[key] = str(data[key])
    return replace(base, **changes)


def load_catalog(path: str | Path) -> KindCatalog:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Catalog file must contain a mapping: {path}")
    return catalog_from_mapping(data)
