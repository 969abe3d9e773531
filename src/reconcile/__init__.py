"""Incremental updates of the reference store."""

from reconcile.deletion import DeletionHandler
from reconcile.reconciler import Reconciler

__all__ = ["DeletionHandler", "Reconciler"]
