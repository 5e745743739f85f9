"""Text normalization and heuristic metadata extraction.

normalize:
    Strip markup and entities, collapse whitespace.

MetadataExtractor:
    Topic, key entities, affected regions, sentiment and summary from
    normalized text, driven by injectable ExtractionTables.
"""

from extraction.text import normalize
from extraction.tables import ExtractionTables, DEFAULT_TABLES
from extraction.extractor import (
    Metadata,
    MetadataExtractor,
    classify_topic,
    extract_entities,
    extract_regions,
    score_sentiment,
    summarize,
)

__all__ = [
    "normalize",
    "ExtractionTables",
    "DEFAULT_TABLES",
    "Metadata",
    "MetadataExtractor",
    "classify_topic",
    "extract_entities",
    "extract_regions",
    "score_sentiment",
    "summarize",
]
