"""Pydantic V2 models for serializing store contents.

Used by the command-line tool to print snapshots and sweep results as JSON.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class MetricModel(BaseModel):
    """A single live metric value"""
    model_config = ConfigDict(from_attributes=True)

    value: str
    unit: Optional[str] = None
    ttl: int = 0


class AssetMetricsModel(BaseModel):
    """All live metrics of one asset, keyed by metric name"""
    model_config = ConfigDict(from_attributes=True)

    asset: str
    metrics: Dict[str, MetricModel]


class StoreSnapshotModel(BaseModel):
    """Root envelope for a full dump of the shared directory"""
    model_config = ConfigDict(from_attributes=True)

    timestamp: float
    root: str
    assets: List[AssetMetricsModel]
    total_metrics: int


class SweepResultModel(BaseModel):
    """Counters of one garbage-collection pass"""
    model_config = ConfigDict(from_attributes=True)

    examined: int
    evicted: int
    restored: int
    errors: int
