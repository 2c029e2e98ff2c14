from topicgraph.domain.topic import RelationRef, Section, Topic, make_topic_id


def link(target: str, display: str = "link") -> RelationRef:
    """A markdown-style related link, as the parser would extract it."""
    return RelationRef(
        raw=f"[{display}]({target})", target=target, display=display, kind="markdown"
    )


def wikilink(name: str) -> RelationRef:
    return RelationRef(raw=f"[[{name}]]", target=name, kind="wikilink")


def text_ref(text: str) -> RelationRef:
    return RelationRef(raw=text, target=text, kind="text")


def build_topic(
    unit_id: str,
    title: str,
    *,
    sub_index: int = 0,
    body: str = "Some body text.",
    relations: list[RelationRef] | None = None,
    source: str | None = None,
) -> Topic:
    return Topic(
        id=make_topic_id(unit_id, sub_index),
        unit_id=unit_id,
        sub_index=sub_index,
        title=title,
        source=source,
        sections=[Section(heading="Summary", text=body)],
        relations=relations or [],
    )
