"""Keyword/pattern document classifier.

Every category owns an ordered tuple of signals. A signal contributes at most
one point no matter how often it matches. The category with the most points
wins; ties go to the category declared first in :class:`Category`. Confidence
is the winner's share of all points scored by every category, so it reflects
how unambiguous the text is rather than an absolute probability.
"""

import re
from typing import ClassVar

from docworker.classification.models import Category, ClassificationResult


class PatternClassifier:
    """Deterministic classifier over fixed regex signal tables."""

    MODEL_ID: ClassVar[str] = "pattern_matching_v1"

    SIGNALS: ClassVar[dict[Category, tuple[re.Pattern[str], ...]]] = {
        Category.INVOICE: tuple(
            re.compile(p, re.IGNORECASE)
            for p in (
                r"invoice",
                r"bill\s+to",
                r"invoice\s+number",
                r"invoice\s+date",
                r"amount\s+due",
                r"subtotal",
                r"tax\s+amount",
                r"total\s+amount",
            )
        ),
        Category.RECEIPT: tuple(
            re.compile(p, re.IGNORECASE)
            for p in (
                r"receipt",
                r"thank\s+you",
                r"purchased",
                r"cashier",
                r"transaction",
                r"payment\s+method",
                r"card\s+number",
            )
        ),
        Category.CV: tuple(
            re.compile(p, re.IGNORECASE)
            for p in (
                r"curriculum\s+vitae",
                r"r[eé]sum[eé]",
                r"education",
                r"experience",
                r"skills",
                r"references",
                r"objective",
                r"professional\s+summary",
            )
        ),
        Category.ID_CARD: tuple(
            re.compile(p, re.IGNORECASE)
            for p in (
                r"identity\s+card",
                r"id\s+card",
                r"driver[’']?s?\s+licen[cs]e",
                r"passport",
                r"date\s+of\s+birth",
                r"nationality",
                r"card\s+number",
            )
        ),
    }

    def classify(self, text: str) -> ClassificationResult:
        scores = self.score(text)
        total = sum(scores.values())
        if total == 0:
            return ClassificationResult(type=Category.OTHER, confidence=0.0, model=self.MODEL_ID)

        best = Category.OTHER
        best_score = 0
        for category in Category:
            if scores[category] > best_score:
                best, best_score = category, scores[category]

        confidence = min(best_score / total * 100.0, 100.0)
        return ClassificationResult(type=best, confidence=confidence, model=self.MODEL_ID)

    def score(self, text: str) -> dict[Category, int]:
        """Number of distinct signals matched per category, in declaration order."""
        scores = dict.fromkeys(Category, 0)
        for category, signals in self.SIGNALS.items():
            scores[category] = sum(1 for signal in signals if signal.search(text))
        return scores
