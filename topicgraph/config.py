from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TOPICGRAPH_")

    # Parser settings
    topic_separator: str = "---"
    related_headings: list[str] = [
        "Related Summaries & Subjects",
        "Related Subjects",
        "Related Topics",
        "Related Notes",
        "Related",
    ]
    citation_prefixes: list[str] = ["Source", "Citation", "Reference", "URL"]

    # Corpus settings
    corpus_glob: str = "*.md"
    ingest_workers: int = 4
    snapshot_path: Path | None = None

    # Graph and check settings
    default_related_depth: int = 1
    near_duplicate_threshold: float = 0.6

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
