import re
from dataclasses import dataclass, field

from .settings import settings

STOPWORDS = frozenset({"the", "and", "for", "with", "from"})


@dataclass(frozen=True)
class TitleMatchPolicy:
    """How the duplicate detector decides two listing titles look alike.

    ``first_token`` searches for the first significant word of the title,
    ``any_token`` for any of them. Matching is a case-insensitive substring
    test done by the database.
    """

    strategy: str = "first_token"
    min_token_length: int = 4
    stopwords: frozenset = field(default=STOPWORDS)

    SPLIT_RE = re.compile(r"[^\w]+")
    STRATEGIES = ("first_token", "any_token")

    def __post_init__(self):
        if self.strategy not in self.STRATEGIES:
            raise ValueError(
                f"Invalid title match strategy: {self.strategy}. "
                f"Allowed values: {', '.join(self.STRATEGIES)}"
            )

    def significant_tokens(self, title: str | None) -> list[str]:
        if not title:
            return []

        tokens = []
        for part in self.SPLIT_RE.split(title.lower()):
            if len(part) < self.min_token_length or part in self.stopwords:
                continue
            if part not in tokens:
                tokens.append(part)
        return tokens

    def search_tokens(self, title: str | None) -> list[str]:
        tokens = self.significant_tokens(title)
        if self.strategy == "first_token":
            return tokens[:1]
        return tokens


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


title_policy = TitleMatchPolicy(
    strategy=settings.TITLE_MATCH_STRATEGY,
    min_token_length=settings.TITLE_MATCH_MIN_TOKEN_LENGTH,
)
