"""
Unit coverage classification and workload tiers.

Pure functions: thresholds are always passed in, never read from storage.
"""

from dataclasses import dataclass, asdict
from typing import Dict

GOOD = "good"
WARNING = "warning"
CRITICAL = "critical"

_SEVERITY = {GOOD: 0, WARNING: 1, CRITICAL: 2}


@dataclass(frozen=True)
class CoverageThresholds:
    """Minimum interns a unit needs today, per workload tier."""
    min_low: int = 1
    min_medium: int = 1
    min_high: int = 2
    batch_balance: bool = False  # if True, a unit missing a batch is under-covered

    def minimum_for(self, workload: str) -> int:
        if workload == "High":
            return self.min_high
        if workload == "Medium":
            return self.min_medium
        return self.min_low

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class WorkloadThresholds:
    """Patient-count upper bounds for the Low and Medium tiers."""
    low_max: int = 4
    medium_max: int = 8

    def to_dict(self) -> dict:
        return asdict(self)


def derive_workload(patient_count: int, thresholds: WorkloadThresholds) -> str:
    count = patient_count or 0
    if count <= thresholds.low_max:
        return "Low"
    if count <= thresholds.medium_max:
        return "Medium"
    return "High"


def classify(current_interns: int, workload: str, thresholds: CoverageThresholds) -> str:
    """
    Coverage status of one unit.

    High-workload units below their minimum are critical; Low/Medium units
    below their minimum are a warning.
    """
    count = current_interns or 0
    if count >= thresholds.minimum_for(workload):
        return GOOD
    return CRITICAL if workload == "High" else WARNING


def classify_batches(batch_counts: Dict[str, int], workload: str, thresholds: CoverageThresholds) -> str:
    """classify() on the total, downgraded when batch balance is required and a batch is absent."""
    status = classify(sum(batch_counts.values()), workload, thresholds)
    if not thresholds.batch_balance:
        return status
    if all(batch_counts.get(b, 0) > 0 for b in ("A", "B")):
        return status
    missing = CRITICAL if workload == "High" else WARNING
    return max(status, missing, key=_SEVERITY.__getitem__)
