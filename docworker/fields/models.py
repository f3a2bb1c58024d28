from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class MoneyValue:
    """Parsed monetary amount."""

    type: str = "money"
    value: float = 0.0
    currency: str = "USD"


@dataclass(frozen=True)
class NumberValue:
    """Parsed plain number."""

    type: str = "number"
    value: float = 0.0


NormalizedValue = MoneyValue | NumberValue


@dataclass(frozen=True)
class ExtractedField:
    """A single named datum found in document text."""

    name: str
    value: str
    confidence: float
    normalized: NormalizedValue | None = None

    def normalized_payload(self) -> dict[str, Any] | None:
        """JSONB-ready form of the normalized value, if any."""
        if self.normalized is None:
            return None
        return asdict(self.normalized)
