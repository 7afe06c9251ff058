"""Trending topic scoring for the automated content pipeline."""

from dataclasses import dataclass

DEFAULT_TOPICS = [
    {"topic": "AI Developments", "velocity": 0.8, "novelty": 0.9},
    {"topic": "Tech Innovation", "velocity": 0.7, "novelty": 0.8},
]


@dataclass
class TrendingTopic:
    """A candidate topic with how fast it is rising and how fresh it is."""
    topic: str
    velocity: float = 0.0   # 0-1
    novelty: float = 0.0    # 0-1
    platform: str = "TikTok"

    @property
    def score(self) -> float:
        return self.velocity * self.novelty

    @property
    def prompt(self) -> str:
        return f"Create a vertical video about {self.topic} with viral potential"

    @classmethod
    def from_dict(cls, data: dict) -> "TrendingTopic":
        return cls(
            topic=str(data["topic"]),
            velocity=float(data.get("velocity", 0.0)),
            novelty=float(data.get("novelty", 0.0)),
            platform=str(data.get("platform") or "TikTok"),
        )


def load_topics(config: dict | None) -> list[TrendingTopic]:
    """Topics from config.yaml ``trending.topics``, or the built-in pair."""
    raw = ((config or {}).get("trending") or {}).get("topics") or DEFAULT_TOPICS
    return [TrendingTopic.from_dict(t) for t in raw]


def rank_topics(topics: list[TrendingTopic]) -> list[TrendingTopic]:
    """Highest score first; on ties the later topic ranks first."""
    return sorted(reversed(topics), key=lambda t: t.score, reverse=True)


def select_trending(topics: list[TrendingTopic]) -> TrendingTopic | None:
    """The top-scoring topic (the last one on ties), or None if there are none."""
    best = None
    for topic in topics:
        if best is None or topic.score >= best.score:
            best = topic
    return best
