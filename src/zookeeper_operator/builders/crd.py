"""Builder for the ZookeeperCluster custom resource definition."""

from __future__ import annotations

from typing import Any

from ..constants import (
    API_GROUP,
    API_VERSION,
    CRD_NAME,
    DEFAULT_REPLICAS,
    KIND_CLUSTER,
    PLURAL_CLUSTER,
    SHORT_NAME_CLUSTER,
    SINGULAR_CLUSTER,
)


def build_crd() -> dict[str, Any]:
    """Create the apiextensions.k8s.io/v1 declaration of the cluster type."""
    schema = {
        "type": "object",
        "properties": {
            "spec": {
                "type": "object",
                "properties": {
                    "replicas": {
                        "type": "integer",
                        "minimum": 0,
                        "default": DEFAULT_REPLICAS,
                    },
                    "resources": {
                        "type": "object",
                        "properties": {
                            "cpu": {"type": "string"},
                            "memory": {"type": "string"},
                        },
                    },
                },
            },
            "status": {
                "type": "object",
                "x-kubernetes-preserve-unknown-fields": True,
            },
        },
    }

    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": CRD_NAME},
        "spec": {
            "group": API_GROUP,
            "scope": "Namespaced",
            "names": {
                "kind": KIND_CLUSTER,
                "plural": PLURAL_CLUSTER,
                "singular": SINGULAR_CLUSTER,
                "shortNames": [SHORT_NAME_CLUSTER],
            },
            "versions": [
                {
                    "name": API_VERSION,
                    "served": True,
                    "storage": True,
                    "schema": {"openAPIV3Schema": schema},
                    "additionalPrinterColumns": [
                        {
                            "name": "Replicas",
                            "type": "integer",
                            "jsonPath": ".spec.replicas",
                        },
                        {
                            "name": "Age",
                            "type": "date",
                            "jsonPath": ".metadata.creationTimestamp",
                        },
                    ],
                },
            ],
        },
    }
