"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from cryptodash.db.poco.asset import Asset
from cryptodash.db.poco.news_sentiment import NewsSentiment
from cryptodash.db.poco.prediction import AiPrediction
from cryptodash.db.poco.snapshot import Snapshot

__all__ = ["Asset", "AiPrediction", "NewsSentiment", "Snapshot"]
