"""Fixed demonstration articles.

Used two ways:
    - NewsService.seed_sample() loads them on request (bootstrap/test aid)
    - ArticleStore.seed_if_empty() loads them when ingestion produced
      nothing and the store has no articles at all

The records carry no id or publishedAt; the store assigns both on save.
"""

from models.article import Article

SAMPLE_ARTICLES: list[dict] = [
    {
        "title": "India's Economic Growth",
        "url": "https://example.com/india-economy",
        "source": "Times of India",
        "topic": "business",
        "summary": "India's economy shows strong growth in the latest quarter, driven by manufacturing and services sectors.",
        "sentimentScore": 0.8,
        "keyEntities": ["India", "Economy", "Manufacturing"],
        "affectedStates": ["Maharashtra", "Gujarat"],
        "imageUrl": "https://example.com/images/economy.jpg",
    },
    {
        "title": "Cricket World Cup 2024",
        "url": "https://example.com/cricket",
        "source": "The Hindu",
        "topic": "sports",
        "summary": "India prepares for the upcoming Cricket World Cup with high hopes and strong team selection.",
        "sentimentScore": 0.6,
        "keyEntities": ["Cricket", "World Cup", "India"],
        "affectedStates": ["Delhi", "Maharashtra"],
        "imageUrl": "https://example.com/images/cricket.jpg",
    },
    {
        "title": "Technology Innovation in India",
        "url": "https://example.com/tech",
        "source": "Hindustan Times",
        "topic": "technology",
        "summary": "Indian tech startups are making waves globally with innovative solutions in AI and blockchain.",
        "sentimentScore": 0.7,
        "keyEntities": ["Technology", "Startups", "AI"],
        "affectedStates": ["Karnataka", "Telangana"],
        "imageUrl": "https://example.com/images/tech.jpg",
    },
    {
        "title": "New Agricultural Policy",
        "url": "https://example.com/agriculture",
        "source": "Times of India",
        "topic": "agriculture",
        "summary": "Government announces new agricultural policy focusing on sustainable farming and farmer welfare.",
        "sentimentScore": 0.5,
        "keyEntities": ["Agriculture", "Farmers", "Policy"],
        "affectedStates": ["Punjab", "Haryana", "Uttar Pradesh"],
        "imageUrl": "https://example.com/images/agriculture.jpg",
    },
    {
        "title": "Bollywood's Latest Blockbuster",
        "url": "https://example.com/entertainment",
        "source": "The Hindu",
        "topic": "entertainment",
        "summary": "New Bollywood movie breaks box office records with stellar performances and innovative storytelling.",
        "sentimentScore": 0.9,
        "keyEntities": ["Bollywood", "Movie", "Box Office"],
        "affectedStates": ["Maharashtra", "Delhi"],
        "imageUrl": "https://example.com/images/entertainment.jpg",
    },
    {
        "title": "Political Reforms",
        "url": "https://example.com/politics",
        "source": "Hindustan Times",
        "topic": "politics",
        "summary": "Major political reforms announced to improve transparency and accountability in governance.",
        "sentimentScore": 0.4,
        "keyEntities": ["Politics", "Reforms", "Government"],
        "affectedStates": ["Delhi", "Uttar Pradesh"],
        "imageUrl": "https://example.com/images/politics.jpg",
    },
    {
        "title": "Environmental Initiatives",
        "url": "https://example.com/environment",
        "source": "Times of India",
        "topic": "environment",
        "summary": "New environmental policies introduced to combat climate change and promote sustainable development.",
        "sentimentScore": 0.7,
        "keyEntities": ["Environment", "Climate", "Policy"],
        "affectedStates": ["Kerala", "Himachal Pradesh"],
        "imageUrl": "https://example.com/images/environment.jpg",
    },
    {
        "title": "Digital Transformation",
        "url": "https://example.com/digital",
        "source": "The Hindu",
        "topic": "technology",
        "summary": "India's digital transformation accelerates with new initiatives in e-governance and digital payments.",
        "sentimentScore": 0.8,
        "keyEntities": ["Digital", "Technology", "Innovation"],
        "affectedStates": ["Andhra Pradesh", "Karnataka"],
        "imageUrl": "https://example.com/images/digital.jpg",
    },
    {
        "title": "Sports Infrastructure",
        "url": "https://example.com/sports",
        "source": "Hindustan Times",
        "topic": "sports",
        "summary": "Major investment in sports infrastructure to promote athletics and develop future champions.",
        "sentimentScore": 0.6,
        "keyEntities": ["Sports", "Infrastructure", "Investment"],
        "affectedStates": ["Gujarat", "Maharashtra"],
        "imageUrl": "https://example.com/images/sports.jpg",
    },
    {
        "title": "Healthcare Reforms",
        "url": "https://example.com/healthcare",
        "source": "Times of India",
        "topic": "healthcare",
        "summary": "New healthcare reforms announced to improve medical services and make healthcare more accessible.",
        "sentimentScore": 0.7,
        "keyEntities": ["Healthcare", "Reforms", "Medical"],
        "affectedStates": ["Delhi", "Tamil Nadu"],
        "imageUrl": "https://example.com/images/healthcare.jpg",
    },
]


def sample_articles() -> list[Article]:
    """Fresh Article instances for the demonstration set."""
    return [Article.model_validate(record) for record in SAMPLE_ARTICLES]
