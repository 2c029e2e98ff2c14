"""Exception taxonomy for the topic graph engine."""


class TopicGraphError(Exception):
    """Base exception for all topic graph errors."""

    pass


class ParseError(TopicGraphError):
    """A sub-document could not be turned into a topic."""

    def __init__(self, unit_id: str, sub_index: int, details: str) -> None:
        self.unit_id = unit_id
        self.sub_index = sub_index
        self.details = details
        super().__init__(f"Parse error in {unit_id} (sub-document {sub_index}): {details}")


class TopicNotFoundError(TopicGraphError, KeyError):
    """A graph query named a topic that is not in the graph."""

    def __init__(self, topic_id: str) -> None:
        self.topic_id = topic_id
        super().__init__(f"Topic not found: {topic_id}")

    def __str__(self) -> str:
        return self.args[0]
