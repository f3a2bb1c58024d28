from collections.abc import Mapping, Sequence

from docworker.classification.models import Category
from docworker.fields.models import ExtractedField
from docworker.fields.rules import RULESETS, FieldRule


class FieldExtractor:
    """Applies the rule set registered for a document category."""

    def __init__(
        self,
        rulesets: Mapping[Category, Sequence[FieldRule]] | None = None,
    ) -> None:
        self._rulesets = rulesets if rulesets is not None else RULESETS

    def extract_fields(self, text: str, category: Category | str) -> list[ExtractedField]:
        """Run every rule of *category* against *text*.

        Categories without a rule set, including unknown labels, yield an
        empty list.
        """
        try:
            category = Category(category)
        except ValueError:
            return []

        fields: list[ExtractedField] = []
        for rule in self._rulesets.get(category, ()):
            field = rule.apply(text)
            if field is not None:
                fields.append(field)
        return fields
