"""Static keyword tables driving the heuristic extractors.

All classification behaviour is data: an ordered topic table, a region
gazetteer, a stop-word set and a two-sided sentiment lexicon. The tables
are bundled into an ExtractionTables value that is injected into
MetadataExtractor, so alternative tables can be swapped in and tested
on their own.

Topic Table Order:
    classify_topic returns the FIRST topic with a keyword hit, so the order
    below is part of the contract. Earlier entries win on multi-topic text:

        politics > business > sports > technology > agriculture >
        entertainment > environment > healthcare

    Matching is plain case-insensitive substring search, which means short
    keywords ("ai", "app", "eco") also hit inside longer words. That is
    accepted; the classifier aims for reproducibility, not accuracy.
"""

from dataclasses import dataclass, field

TOPIC_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("politics", ("election", "minister", "government", "party", "congress",
                  "bjp", "opposition", "parliament", "assembly")),
    ("business", ("economy", "market", "stock", "trade", "business", "company",
                  "industry", "finance")),
    ("sports", ("cricket", "football", "match", "tournament", "player", "team",
                "sport", "game")),
    ("technology", ("tech", "digital", "internet", "mobile", "app", "software",
                    "computer", "ai", "artificial intelligence")),
    ("agriculture", ("farmer", "crop", "agriculture", "farm", "rural", "village",
                     "kisan")),
    ("entertainment", ("movie", "film", "actor", "actress", "bollywood",
                       "hollywood", "celebrity", "star")),
    ("environment", ("climate", "environment", "pollution", "forest", "wildlife",
                     "green", "eco")),
    ("healthcare", ("health", "medical", "hospital", "doctor", "disease",
                    "treatment", "medicine")),
)

# Map section labels used by feeds to table topics.
TOPIC_ALIASES: dict[str, str] = {
    "sport": "sports",
    "cricket": "sports",
    "tech": "technology",
    "technology": "technology",
    "gadgets": "technology",
    "economy": "business",
    "markets": "business",
    "money": "business",
    "politics": "politics",
    "elections": "politics",
    "health": "healthcare",
    "lifestyle-health": "healthcare",
    "entertainment": "entertainment",
    "movies": "entertainment",
    "bollywood": "entertainment",
    "environment": "environment",
    "climate": "environment",
    "agriculture": "agriculture",
}

# Indian states and union territories, in lookup (and output) order
GAZETTEER: tuple[str, ...] = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Delhi", "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jammu and Kashmir",
    "Jharkhand", "Karnataka", "Kerala", "Ladakh", "Lakshadweep", "Madhya Pradesh",
    "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland", "Odisha",
    "Puducherry", "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana",
    "Tripura", "Uttar Pradesh", "Uttarakhand", "West Bengal",
)

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by",
})

POSITIVE_WORDS: frozenset[str] = frozenset({
    "good", "great", "excellent", "positive", "success", "win", "happy", "better",
})

NEGATIVE_WORDS: frozenset[str] = frozenset({
    "bad", "poor", "negative", "failure", "lose", "unhappy", "worse", "problem",
})


@dataclass(frozen=True)
class ExtractionTables:
    """Bundle of lookup tables used by the metadata extractor.

    Attributes:
        topics: Ordered (topic, keywords) pairs; order is the tie-break
        topic_aliases: Section label -> topic name
        gazetteer: Region names matched against article text
        stop_words: Lowercase tokens never reported as entities
        positive_words: Lowercase tokens scoring +step
        negative_words: Lowercase tokens scoring -step
        sentiment_step: Score contribution per lexicon hit
    """

    topics: tuple[tuple[str, tuple[str, ...]], ...] = TOPIC_KEYWORDS
    topic_aliases: dict[str, str] = field(default_factory=lambda: dict(TOPIC_ALIASES))
    gazetteer: tuple[str, ...] = GAZETTEER
    stop_words: frozenset[str] = STOP_WORDS
    positive_words: frozenset[str] = POSITIVE_WORDS
    negative_words: frozenset[str] = NEGATIVE_WORDS
    sentiment_step: float = 0.1

    @property
    def topic_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.topics)


DEFAULT_TABLES = ExtractionTables()
