"""Domain entities for masked query text."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MaskingToken:
    token: str  # e.g. "[EMAIL_1]"
    original_value: str
    kind: str  # email | phone | id | name


@dataclass
class MaskingResult:
    masked_text: str
    tokens: list[MaskingToken] = field(default_factory=list)

    @property
    def masked(self) -> bool:
        return bool(self.tokens)
