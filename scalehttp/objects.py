"""Kubernetes object identities, the HTTP scaled object and ScaledObject manifests."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Any

__all__ = [
    "NamespacedName",
    "ScaleTargetRef",
    "HTTPScaledObject",
    "namespaced_name_of",
    "namespaced_name_from_ref",
    "object_kind",
    "new_scaled_object",
]

SCALED_OBJECT_API_VERSION = "keda.sh/v1alpha1"
SCALED_OBJECT_KIND = "ScaledObject"

_POLLING_INTERVAL = 15
_TRIGGER_TYPE = "external-push"

_MK_SCALER_ADDRESS = "scalerAddress"
_MK_HOSTS = "hosts"
_MK_PATH_PREFIXES = "pathPrefixes"


@dataclass(frozen=True)
class NamespacedName:
    """The namespace and name that identify an object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class ScaleTargetRef:
    """The workload that a scaled object scales."""

    name: str
    kind: str = ""
    api_version: str = ""


@dataclass
class HTTPScaledObject:
    """An HTTP scaled object: the hosts and path prefixes routed to a workload.

    ``hosts`` and ``path_prefixes`` left as ``None`` match any host or path.
    """

    name: str = ""
    namespace: str = ""
    creation_timestamp: datetime | None = None
    hosts: list[str] | None = None
    path_prefixes: list[str] | None = None
    scale_target_ref: ScaleTargetRef | None = None
    target_pending_requests: int | None = None
    min_replicas: int | None = None
    max_replicas: int | None = None

    def namespaced_name(self) -> NamespacedName:
        return NamespacedName(self.namespace, self.name)

    def deep_copy(self) -> HTTPScaledObject:
        return copy.deepcopy(self)


def namespaced_name_of(obj: Any) -> NamespacedName | None:
    """Return the identity of an object with ``namespace`` and ``name``, or ``None``."""
    if obj is None:
        return None
    return NamespacedName(obj.namespace, obj.name)


def namespaced_name_from_ref(ref: Any) -> NamespacedName | None:
    """Return the identity named by a scaled-object reference, or ``None``."""
    if ref is None:
        return None
    return NamespacedName(ref.namespace, ref.name)


def object_kind(obj: Any) -> str:
    """Return the kind of an object: the name of its type."""
    if isinstance(obj, type):
        return obj.__name__
    return type(obj).__name__


def new_scaled_object(
    namespace: str,
    name: str,
    workload_ref: ScaleTargetRef,
    scaler_address: str,
    hosts: list[str],
    path_prefixes: list[str],
    min_replicas: int | None,
    max_replicas: int | None,
    cooldown_period: int | None,
) -> dict[str, Any]:
    """Build a ScaledObject manifest that scales ``workload_ref`` by the external push scaler."""
    spec: dict[str, Any] = {
        "scaleTargetRef": {
            "apiVersion": workload_ref.api_version,
            "kind": workload_ref.kind,
            "name": workload_ref.name,
        },
        "pollingInterval": _POLLING_INTERVAL,
    }
    optional = {
        "cooldownPeriod": cooldown_period,
        "minReplicaCount": min_replicas,
        "maxReplicaCount": max_replicas,
    }
    spec.update({key: value for key, value in optional.items() if value is not None})
    spec["advanced"] = {"restoreToOriginalReplicaCount": True}
    spec["triggers"] = [
        {
            "type": _TRIGGER_TYPE,
            "metadata": {
                _MK_SCALER_ADDRESS: scaler_address,
                _MK_HOSTS: ",".join(hosts),
                _MK_PATH_PREFIXES: ",".join(path_prefixes),
            },
        }
    ]
    return {
        "apiVersion": SCALED_OBJECT_API_VERSION,
        "kind": SCALED_OBJECT_KIND,
        "metadata": {"namespace": namespace, "name": name},
        "spec": spec,
    }