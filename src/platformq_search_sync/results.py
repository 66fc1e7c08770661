"""Search result wrappers"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class SearchHit:
    """A single matching document"""
    id: str
    score: Optional[float]
    source: Dict[str, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> Optional[str]:
        return self.source.get("DocumentType")

    @property
    def stages(self) -> List[str]:
        return list(self.source.get("StageTag") or [])


@dataclass
class ResultList:
    """Hits returned for one query, in engine order"""
    query: Dict[str, Any]
    total: int = 0
    hits: List[SearchHit] = field(default_factory=list)
    took: Optional[int] = None

    @classmethod
    def from_response(cls, query: Dict[str, Any], response: Any) -> "ResultList":
        hits = response["hits"]
        total = hits.get("total", 0)
        # Engines report either a bare count or {"value": n, "relation": "eq"}
        if isinstance(total, dict):
            total = total.get("value", 0)

        return cls(
            query=query,
            total=total,
            hits=[
                SearchHit(id=hit["_id"], score=hit.get("_score"), source=hit.get("_source", {}))
                for hit in hits.get("hits", [])
            ],
            took=response.get("took"),
        )

    def ids(self) -> List[str]:
        return [hit.id for hit in self.hits]

    def __iter__(self) -> Iterator[SearchHit]:
        return iter(self.hits)

    def __len__(self) -> int:
        return len(self.hits)
