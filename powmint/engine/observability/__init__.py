# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides Prometheus metrics for the mint engine.
"""

from .metrics import metrics_registry, update_metrics, record_mint, record_rejection

__all__ = ['metrics_registry', 'update_metrics', 'record_mint', 'record_rejection']
