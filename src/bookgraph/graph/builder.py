"""Node/link graph construction from roots and ranked recommendations."""

from __future__ import annotations

from collections.abc import Sequence
from itertools import combinations

from bookgraph.models import Recommendation, Work

from .models import GraphData, GraphLink, GraphNode


def build_graph(roots: Sequence[Work], recs: Sequence[Recommendation]) -> GraphData:
    """Build the serializable graph for the presentation layer.

    Root nodes come first in root order, then recommendation nodes in ranked
    order. Each (root, recommendation) provenance pair yields one link, and
    roots sharing any subject are linked to each other with weight 2.
    Output depends only on the inputs.
    """
    nodes: dict[str, GraphNode] = {}
    links: dict[tuple[str, str], GraphLink] = {}
    root_order: dict[str, int] = {}

    for root in roots:
        if root.id in nodes:
            continue
        root_order[root.id] = len(root_order)
        nodes[root.id] = GraphNode(
            id=root.id,
            label=root.title,
            type="root",
            subjects=[s.lower() for s in root.subjects],
        )

    for rec in recs:
        if rec.id in nodes:
            continue
        matching = sorted(
            (rid for rid in rec.matching_root_ids if rid in root_order), key=root_order.__getitem__
        )
        nodes[rec.id] = GraphNode(
            id=rec.id,
            label=rec.title,
            type="rec",
            subjects=list(rec.subjects),
            matching_root_ids=matching,
            is_intersection=rec.is_intersection,
        )
        for rid in matching:
            links.setdefault(
                (rid, rec.id),
                GraphLink(source=rid, target=rec.id, value=2 if rec.is_intersection else 1),
            )

    root_nodes = [n for n in nodes.values() if n.type == "root"]
    for a, b in combinations(root_nodes, 2):
        if set(a.subjects) & set(b.subjects):
            links.setdefault((a.id, b.id), GraphLink(source=a.id, target=b.id, value=2))

    _count_connections(nodes, links.values())
    return GraphData(nodes=list(nodes.values()), links=list(links.values()))


def _count_connections(nodes: dict[str, GraphNode], links) -> None:
    # a link touching a root counts for its other end; root-root counts for both
    for link in links:
        src, dst = nodes[link.source], nodes[link.target]
        if src.type == "root" and dst.type == "root":
            src.connections += 1
            dst.connections += 1
        elif src.type == "root":
            dst.connections += 1
        elif dst.type == "root":
            src.connections += 1
