"""Graph construction for recommendation results."""

from .builder import build_graph
from .models import GraphData, GraphLink, GraphNode

__all__ = ["GraphData", "GraphLink", "GraphNode", "build_graph"]
