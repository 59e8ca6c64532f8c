"""Reconcilers for operator-managed resources."""

from .base import BaseHandler
from .cluster import ClusterReconciler

__all__ = ["BaseHandler", "ClusterReconciler"]
