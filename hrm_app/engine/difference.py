from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional

import numpy as np

from hrm_app.engine.models import Sample

__all__ = ["resolve_reference_index", "compute_differences"]

logger = logging.getLogger(__name__)


def resolve_reference_index(reference_index: Optional[int], n_samples: int) -> Optional[int]:
    """Return the index when it addresses a sample, otherwise ``None``."""

    if reference_index is None:
        return None
    try:
        idx = int(reference_index)
    except (TypeError, ValueError):
        return None
    if 0 <= idx < n_samples:
        return idx
    logger.info("Reference index %s out of range for %d samples; skipping differences", idx, n_samples)
    return None


def compute_differences(samples: List[Sample], reference_index: Optional[int]) -> List[Sample]:
    """Subtract the reference sample's normalized curve from every sample.

    The reference itself gets an all-zero curve.  Without a usable reference
    the samples are returned unchanged.
    """

    ref_idx = resolve_reference_index(reference_index, len(samples))
    if ref_idx is None:
        return list(samples)

    reference = np.asarray(samples[ref_idx].normalized, dtype=float)
    out: List[Sample] = []
    for idx, sample in enumerate(samples):
        if idx == ref_idx:
            diff = np.zeros(reference.size, dtype=float)
        else:
            diff = np.asarray(sample.normalized, dtype=float) - reference
        out.append(dataclasses.replace(sample, difference=diff))
    return out
