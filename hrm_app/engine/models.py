from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import numpy as np


@dataclass
class TabularReading:
    temperature_field: str
    field_names: List[str]              # temperature field first
    rows: List[Dict[str, Any]]          # raw cell values keyed by field name
    source: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def sample_fields(self) -> List[str]:
        return [name for name in self.field_names if name != self.temperature_field]


@dataclass
class Sample:
    name: str
    fluorescence: np.ndarray            # cleaned raw fluorescence
    visible: bool = True
    normalized: Optional[np.ndarray] = None
    derivative: Optional[np.ndarray] = None   # -dF/dT
    tm: Optional[float] = None
    difference: Optional[np.ndarray] = None


@dataclass(frozen=True)
class MeltRegions:
    pre_start: int
    pre_end: int
    post_start: int
    post_end: int

    def is_valid_for(self, n_points: int) -> bool:
        return 0 <= self.pre_start <= self.pre_end <= self.post_start <= self.post_end <= n_points

    def as_dict(self) -> Dict[str, int]:
        return {
            "pre_start": self.pre_start,
            "pre_end": self.pre_end,
            "post_start": self.post_start,
            "post_end": self.post_end,
        }


@dataclass
class Extraction:
    temperatures: np.ndarray
    samples: List[Sample]
    warnings: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    temperatures: np.ndarray
    samples: List[Sample]
    regions: MeltRegions
    settings: Any = None
    warnings: List[str] = field(default_factory=list)
