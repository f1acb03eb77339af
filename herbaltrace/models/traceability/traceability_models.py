# herbaltrace/models/traceability/traceability_models.py
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional


@dataclass
class TraceGap:
    section: str            # "collections" | "qualityTests" | "processingSteps"
    kind: str               # error kind, e.g. "store_error"
    message: str = ""


@dataclass
class TraceResult:
    product: Dict[str, Any] = field(default_factory=dict)
    batches: List[Dict[str, Any]] = field(default_factory=list)
    collections: List[Dict[str, Any]] = field(default_factory=list)
    qualityTests: List[Dict[str, Any]] = field(default_factory=list)
    processingSteps: List[Dict[str, Any]] = field(default_factory=list)

    # branches that could not be read; empty for a complete trace
    gaps: List[TraceGap] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.gaps

    def gap_for(self, section: str) -> Optional[TraceGap]:
        for g in self.gaps:
            if g.section == section:
                return g
        return None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["complete"] = self.complete
        return out
