# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Exports engine metrics in Prometheus format.

Metrics:
- Epoch count, epoch time
- Mining target, reward, tokens minted
- Accepted mints and rejections by reason
- Difficulty readjustments
"""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# EPOCH METRICS
# ═══════════════════════════════════════════════════════════════════

epoch_count = Gauge(
    'powmint_epoch',
    'Current epoch (accepted solutions so far)',
    ['engine'],
    registry=metrics_registry
)

epoch_time_seconds = Histogram(
    'powmint_epoch_time_seconds',
    'Time between accepted solutions in seconds',
    ['engine'],
    buckets=[1, 5, 10, 30, 60, 120, 300, 600, 1200],
    registry=metrics_registry
)

mints_total = Counter(
    'powmint_mints_total',
    'Total number of accepted solutions',
    ['engine'],
    registry=metrics_registry
)

rejections_total = Counter(
    'powmint_rejections_total',
    'Total number of rejected submissions',
    ['engine', 'reason'],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# DIFFICULTY METRICS
# ═══════════════════════════════════════════════════════════════════

mining_target = Gauge(
    'powmint_mining_target',
    'Current mining target (lower is harder)',
    ['engine'],
    registry=metrics_registry
)

difficulty_adjustments_total = Counter(
    'powmint_difficulty_adjustments_total',
    'Total number of target readjustments',
    ['engine'],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# ECONOMIC METRICS
# ═══════════════════════════════════════════════════════════════════

mining_reward = Gauge(
    'powmint_mining_reward',
    'Reward for the next accepted solution',
    ['engine'],
    registry=metrics_registry
)

tokens_minted = Gauge(
    'powmint_tokens_minted',
    'Cumulative tokens minted',
    ['engine'],
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def update_metrics(engine):
    """
    Update gauges from the engine's committed state.
    Called after every accepted mint and when metrics are scraped.

    Args:
        engine: MintCoordinator instance
    """
    engine_id = engine.engine_id
    epoch_count.labels(engine=engine_id).set(engine.epoch_count())
    mining_target.labels(engine=engine_id).set(engine.mining_target())
    mining_reward.labels(engine=engine_id).set(engine.mining_reward())
    tokens_minted.labels(engine=engine_id).set(engine.tokens_minted())


def record_mint(engine_id: str, epoch_seconds: float, adjusted: bool):
    """
    Update counters for an accepted solution.

    Args:
        engine_id: Engine label
        epoch_seconds: Time since the previous accepted solution
        adjusted: Whether this epoch triggered a readjustment
    """
    mints_total.labels(engine=engine_id).inc()
    epoch_time_seconds.labels(engine=engine_id).observe(max(0.0, epoch_seconds))
    if adjusted:
        difficulty_adjustments_total.labels(engine=engine_id).inc()


def record_rejection(engine_id: str, reason: str):
    rejections_total.labels(engine=engine_id, reason=reason).inc()
