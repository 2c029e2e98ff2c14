"""Relation graph module for resolving topic references and building relation graphs."""

from topicgraph.graph.builder import RelationGraphBuilder
from topicgraph.graph.relation_graph import RelationGraph
from topicgraph.graph.resolver import ReferenceResolver

__all__ = [
    "ReferenceResolver",
    "RelationGraph",
    "RelationGraphBuilder",
]
