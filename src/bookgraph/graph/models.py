from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

NodeType = Literal["root", "rec"]


class GraphNode(BaseModel):
    id: str
    label: str
    type: NodeType
    subjects: list[str] = Field(default_factory=list)
    matching_root_ids: list[str] = Field(default_factory=list)
    is_intersection: bool = False
    connections: int = 0

    @property
    def is_warm(self) -> bool:
        """Two or more root connections (a bridging node)."""
        return self.connections >= 2


class GraphLink(BaseModel):
    """Edge between node ids. `value` is 2 for intersection/shared-subject links."""

    source: str
    target: str
    value: Literal[1, 2] = 1


class GraphData(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    links: list[GraphLink] = Field(default_factory=list)

    def node(self, node_id: str) -> GraphNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
