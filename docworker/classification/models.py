from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Document categories, in the order used to break classification ties."""

    INVOICE = "invoice"
    RECEIPT = "receipt"
    CV = "cv"
    ID_CARD = "id_card"
    OTHER = "other"


@dataclass(frozen=True)
class ClassificationResult:
    """Output of the classifier step."""

    type: Category
    confidence: float  # 0..100, relative to all signals that matched
    model: str
