"""Building relation graphs from corpus snapshots."""

from loguru import logger

from topicgraph.corpus_store.base import CorpusSnapshot
from topicgraph.graph.relation_graph import RelationGraph
from topicgraph.graph.resolver import ReferenceResolver


class RelationGraphBuilder:
    """Builds relation graphs from corpus snapshots."""

    def build(self, snapshot: CorpusSnapshot) -> RelationGraph:
        """Build a relation graph by resolving every topic's declared relations.

        The snapshot is never mutated, so the build needs no store lock.

        Args:
            snapshot: Consistent view of the corpus store

        Returns:
            RelationGraph for that snapshot
        """
        resolver = ReferenceResolver(snapshot)
        relations = []
        for topic in snapshot.topics.values():
            relations.extend(resolver.resolve_relations(topic))

        graph = RelationGraph(
            topics=dict(snapshot.topics),
            relations=relations,
            identifier_conflicts=snapshot.identifier_conflicts(),
            version=snapshot.version,
        )
        logger.info(
            f"Built relation graph v{snapshot.version}: {len(graph)} topics, "
            f"{len(graph.edges())} edges, {len(graph.dangling())} dangling, "
            f"{len(graph.ambiguous())} ambiguous"
        )
        return graph
