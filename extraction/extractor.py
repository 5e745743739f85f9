"""Heuristic metadata extraction for normalized article text.

This module derives the classification metadata stored on every Article.
Each extractor is a pure function over already-normalized text plus an
ExtractionTables value; MetadataExtractor binds one set of tables and
runs them together.

Extractors:
    classify_topic:   First table topic with a keyword substring hit
    extract_entities: Distinct title-cased tokens, sorted
    extract_regions:  Gazetteer names mentioned, in gazetteer order
    score_sentiment:  Lexicon hit count scaled and clamped to [-1, 1]
    summarize:        First three sentences, bounded length

Input Scope:
    MetadataExtractor.extract() runs topic, entity, region and sentiment
    extraction over "title body" and builds the summary from the body
    alone. The same rule applies to every feed shape and source.

Determinism:
    No extractor depends on anything but its arguments. Set lookups only
    test membership and every returned sequence has a fixed order, so
    identical text always yields identical metadata.
"""

import logging
import re
from dataclasses import dataclass, field

from extraction.tables import DEFAULT_TABLES, ExtractionTables
from models.article import GENERAL_TOPIC

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_EDGE_PUNCTUATION = ".,!?-"


def _tokens(text: str) -> list[str]:
    """Whitespace tokens with leading/trailing punctuation removed."""
    tokens = []
    for raw in text.split():
        token = raw.strip(_EDGE_PUNCTUATION)
        if token:
            tokens.append(token)
    return tokens


def classify_topic(text: str, tables: ExtractionTables = DEFAULT_TABLES) -> str:
    """Return the first topic whose keyword set matches the text.

    Args:
        text: Normalized text
        tables: Lookup tables; topic order is the tie-break

    Returns:
        Topic name, or "general" when nothing matches
    """
    if not text:
        return GENERAL_TOPIC
    lowered = text.lower()
    for topic, keywords in tables.topics:
        if any(keyword in lowered for keyword in keywords):
            return topic
    return GENERAL_TOPIC


def extract_entities(text: str, tables: ExtractionTables = DEFAULT_TABLES) -> list[str]:
    """Extract candidate key entities.

    Tokens of length <= 2 and stop words are discarded; the rest are
    title-cased ("farmers" -> "Farmers", "DELHI" -> "Delhi"),
    deduplicated and sorted lexicographically.
    """
    entities = {
        token.capitalize()
        for token in _tokens(text)
        if len(token) > 2 and token.lower() not in tables.stop_words
    }
    return sorted(entities)


def extract_regions(text: str, tables: ExtractionTables = DEFAULT_TABLES) -> list[str]:
    """Return gazetteer regions mentioned in the text, in gazetteer order."""
    if not text:
        return []
    lowered = text.lower()
    return [region for region in tables.gazetteer if region.lower() in lowered]


def score_sentiment(text: str, tables: ExtractionTables = DEFAULT_TABLES) -> float:
    """Score text sentiment from the positive/negative lexicons.

    Each positive token adds sentiment_step, each negative token subtracts
    it. The result is clamped to [-1.0, 1.0].

    Returns:
        Score in [-1.0, 1.0]; 0.0 for empty text
    """
    if not text:
        return 0.0
    hits = 0
    # Whitespace tokens only: "win." is not the lexicon word "win"
    for token in text.lower().split():
        if token in tables.positive_words:
            hits += 1
        elif token in tables.negative_words:
            hits -= 1
    score = max(-1.0, min(1.0, hits * tables.sentiment_step))
    # Avoid float drift such as 0.30000000000000004
    return round(score, 4)


def summarize(text: str, max_sentences: int = 3, max_chars: int = 400) -> str:
    """Build a short summary from the leading sentences.

    Splits on runs of sentence-terminal punctuation, keeps the first
    max_sentences non-empty segments, joins them with ". " and appends a
    period. Longer results are cut on a word boundary and end in "...".

    Example:
        >>> summarize("Markets rallied. Investors cheered! Gold fell? Oil rose.")
        'Markets rallied. Investors cheered. Gold fell.'
    """
    if not text:
        return ""
    segments = [s.strip() for s in _SENTENCE_SPLIT.split(text)]
    segments = [s for s in segments if s][:max_sentences]
    if not segments:
        return ""
    summary = ". ".join(segments) + "."
    if len(summary) > max_chars:
        cut = summary[:max_chars].rsplit(" ", 1)[0].rstrip(_EDGE_PUNCTUATION + " ")
        summary = cut + "..."
    return summary


@dataclass
class Metadata:
    """Extraction result for one article."""

    topic: str = GENERAL_TOPIC
    key_entities: list[str] = field(default_factory=list)
    affected_states: list[str] = field(default_factory=list)
    sentiment_score: float = 0.0
    summary: str = ""


class MetadataExtractor:
    """Runs every extractor with one injected set of tables.

    Example:
        >>> extractor = MetadataExtractor()
        >>> meta = extractor.extract("New Agricultural Policy", "Farmers in Punjab celebrate new policy")
        >>> meta.topic, meta.affected_states
        ('agriculture', ['Punjab'])
    """

    def __init__(self, tables: ExtractionTables = DEFAULT_TABLES, summary_max_chars: int = 400):
        self.tables = tables
        self.summary_max_chars = summary_max_chars

    def extract(self, title: str, body: str) -> Metadata:
        """Extract metadata from normalized title and body text."""
        text = f"{title} {body}".strip()
        return Metadata(
            topic=classify_topic(text, self.tables),
            key_entities=extract_entities(text, self.tables),
            affected_states=extract_regions(text, self.tables),
            sentiment_score=score_sentiment(text, self.tables),
            summary=summarize(body, max_chars=self.summary_max_chars),
        )

    def resolve_topic(self, hint: str | None) -> str | None:
        """Map a source's topic hint onto a table topic.

        Hints that name no known topic ("top", "india", "news") return
        None, meaning the source does not fix its own topic.
        """
        if not hint:
            return None
        key = hint.strip().lower()
        if key in self.tables.topic_names:
            return key
        return self.tables.topic_aliases.get(key)
