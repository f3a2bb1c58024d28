"""Field rules and the per-category rule sets.

A rule looks at the full document text on its own and yields at most one
field. Confidence is a fixed weight per rule: patterns with little structural
ambiguity (emails, labelled totals) score higher than loose ones (company or
store names taken from the first line).
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from docworker.classification.models import Category
from docworker.fields.models import ExtractedField, MoneyValue, NormalizedValue, NumberValue

_CURRENCY_CODES = {"$": "USD", "€": "EUR", "£": "GBP", "usd": "USD", "eur": "EUR", "gbp": "GBP"}
DEFAULT_CURRENCY = "USD"

_AMOUNT = r"(?P<currency>[$€£]|USD|EUR|GBP)?\s*(?P<amount>\d[\d,]*(?:\.\d{1,2})?)(?:\s*(?P<code>USD|EUR|GBP)\b)?"
_DATE = r"(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})"


class FieldRule(ABC):
    """Contract for a single field rule."""

    name: str
    confidence: float

    @abstractmethod
    def apply(self, text: str) -> ExtractedField | None:
        """Return the field found in *text*, or None when the rule does not match."""


@dataclass(frozen=True)
class RegexRule(FieldRule):
    """Field taken from one capture group of a regex match."""

    name: str
    pattern: re.Pattern[str]
    confidence: float
    group: int | str = 1
    normalizer: Callable[[re.Match[str]], NormalizedValue | None] | None = None

    def apply(self, text: str) -> ExtractedField | None:
        match = self.pattern.search(text)
        if match is None:
            return None
        value = (match.group(self.group) or "").strip()
        if not value:
            return None
        normalized = self.normalizer(match) if self.normalizer is not None else None
        return ExtractedField(
            name=self.name,
            value=value,
            confidence=self.confidence,
            normalized=normalized,
        )


@dataclass(frozen=True)
class FunctionRule(FieldRule):
    """Field computed by an arbitrary function of the text."""

    name: str
    func: Callable[[str], str | None]
    confidence: float

    def apply(self, text: str) -> ExtractedField | None:
        value = self.func(text)
        if not value:
            return None
        return ExtractedField(name=self.name, value=value, confidence=self.confidence)


def money(match: re.Match[str]) -> MoneyValue | None:
    """Normalize an amount captured by a pattern built on ``_AMOUNT``."""
    try:
        value = float(match.group("amount").replace(",", ""))
    except ValueError:
        return None
    marker = match.group("currency") or match.group("code") or ""
    currency = _CURRENCY_CODES.get(marker.lower(), DEFAULT_CURRENCY)
    return MoneyValue(value=value, currency=currency)


def number(match: re.Match[str]) -> NumberValue | None:
    try:
        return NumberValue(value=float(match.group(1)))
    except ValueError:
        return None


def _rx(pattern: str, flags: int = re.IGNORECASE) -> re.Pattern[str]:
    return re.compile(pattern, flags)


# ----------------------------------------------------------------------
# CV helpers
# ----------------------------------------------------------------------

_SECTION_HEADING_RE = _rx(
    r"^(?:experience|work\s+experience|work\s+history|employment(?:\s+history)?|"
    r"education|skills|technical\s+skills|core\s+competencies|certifications|"
    r"references|objective|professional\s+summary|summary|projects|languages)\s*:?$"
)
_SKILLS_HEADING_RE = _rx(r"^(?:technical\s+skills|core\s+competencies|skills)\s*:?\s*(.*)$")
_EXPERIENCE_HEADING_RE = _rx(
    r"^(?:work\s+experience|experience|work\s+history|employment(?:\s+history)?)\s*:?\s*$"
)
_SKILL_BULLET_RE = _rx(
    r"^[•●\-*]\s*([A-Za-z][^\n]*(?:programming|development|design|management|analysis))\s*$"
)
_TECHNOLOGY_RE = _rx(
    r"(?<![A-Za-z0-9])"
    r"(JavaScript|TypeScript|Python|Java|C\+\+|C#|PHP|Ruby|Go|Rust|Swift|Kotlin|React|"
    r"Angular|Vue|Node\.js|Express|Django|Flask|Spring|\.NET|SQL|MySQL|PostgreSQL|"
    r"MongoDB|Redis|Docker|Kubernetes|AWS|Azure|GCP|Git|Jenkins|CI/CD|HTML|CSS|REST|"
    r"GraphQL|Microservices|Agile|Scrum|Machine Learning|AI|TensorFlow|PyTorch)"
    r"(?![A-Za-z0-9+#])"
)
_JOB_TITLE_RE = re.compile(
    r"^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){0,4})(?:[ \t]+(?:at|@|-|–)(?:[ \t].*)?)?$"
)
_LEADING_NAME_RE = re.compile(r"^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+)$")
_LABELLED_NAME_RE = re.compile(r"\b(?i:name)\b[ \t]*:?[ \t]*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+)")


def _section(text: str, heading: re.Pattern[str]) -> list[str] | None:
    """Non-empty lines following the first heading line matching *heading*.

    The section ends at a blank line (once content was seen) or at the next
    recognised heading.
    """
    lines = text.splitlines()
    for index, line in enumerate(lines):
        match = heading.match(line.strip())
        if match is None:
            continue
        body: list[str] = []
        inline = match.group(1).strip() if match.groups() and match.group(1) else ""
        if inline:
            body.append(inline)
        for following in lines[index + 1 :]:
            stripped = following.strip()
            if not stripped:
                if body:
                    break
                continue
            if _SECTION_HEADING_RE.match(stripped):
                break
            body.append(stripped)
        return body
    return None


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def cv_name(text: str) -> str | None:
    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    match = _LEADING_NAME_RE.match(first_line) or _LABELLED_NAME_RE.search(text)
    return match.group(1).strip() if match else None


def cv_skills(text: str) -> str | None:
    skills: list[str] = []
    section = _section(text, _SKILLS_HEADING_RE)
    if section:
        skills.append(" ".join(section))
    for line in text.splitlines():
        bullet = _SKILL_BULLET_RE.match(line.strip())
        if bullet:
            skills.append(bullet.group(1).strip())
    return ", ".join(_unique(skills)) or None


def cv_technologies(text: str) -> str | None:
    found = [match.lower() for match in _TECHNOLOGY_RE.findall(text)]
    return ", ".join(_unique(found)) or None


def cv_job_titles(text: str) -> str | None:
    section = _section(text, _EXPERIENCE_HEADING_RE)
    if not section:
        return None
    titles = [m.group(1) for m in (_JOB_TITLE_RE.match(line) for line in section) if m]
    return ", ".join(_unique(titles)[:3]) or None


# ----------------------------------------------------------------------
# Rule sets
# ----------------------------------------------------------------------

INVOICE_RULES: tuple[FieldRule, ...] = (
    RegexRule(
        "invoice_number",
        _rx(r"invoice\s*(?:number|#|no\.?)[\s:#]*(?=[A-Z0-9-]*\d)([A-Z0-9-]+)"),
        85,
    ),
    RegexRule("date", _rx(r"(?:invoice\s+)?date[\s:]*" + _DATE), 80),
    RegexRule(
        "company",
        _rx(r"^([A-Z][A-Za-z \t&,.']+?)[ \t]*(?:\n|invoice)", re.IGNORECASE | re.MULTILINE),
        70,
    ),
    RegexRule(
        "invoice_total",
        _rx(r"\b(?:grand\s+total|total(?:\s+amount)?|amount\s+due|balance\s+due)\b[\s:]*" + _AMOUNT),
        90,
        group="amount",
        normalizer=money,
    ),
    RegexRule(
        "tax",
        _rx(r"\b(?:tax|vat)(?:\s+amount)?\b[\s:]*" + _AMOUNT),
        85,
        group="amount",
        normalizer=money,
    ),
)

RECEIPT_RULES: tuple[FieldRule, ...] = (
    RegexRule(
        "store",
        _rx(r"^([A-Z][A-Za-z \t&,.']+?)[ \t]*(?:\n|receipt)", re.IGNORECASE | re.MULTILINE),
        75,
    ),
    RegexRule("date", _rx(_DATE), 80),
    RegexRule(
        "total",
        _rx(r"\b(?:total|amount)\b[\s:]*" + _AMOUNT),
        90,
        group="amount",
        normalizer=money,
    ),
    RegexRule(
        "payment_method",
        _rx(r"\b(card|visa|mastercard|amex|cash)\b"),
        70,
    ),
)

CV_RULES: tuple[FieldRule, ...] = (
    FunctionRule("name", cv_name, 80),
    RegexRule("email", re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})"), 95),
    RegexRule(
        "phone",
        re.compile(r"((?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})"),
        85,
    ),
    FunctionRule("skills", cv_skills, 75),
    FunctionRule("technologies", cv_technologies, 85),
    RegexRule(
        "years_of_experience",
        _rx(r"(\d+)\+?\s*years?\s+(?:of\s+)?experience"),
        80,
        normalizer=number,
    ),
    FunctionRule("job_titles", cv_job_titles, 70),
    RegexRule(
        "education",
        _rx(r"\b(?:bachelor|master|ph\.?d|b\.?sc?|m\.?sc?|degree)\b[^\n]*"),
        75,
        group=0,
    ),
)

ID_CARD_RULES: tuple[FieldRule, ...] = (
    RegexRule("name", _LABELLED_NAME_RE, 85),
    RegexRule(
        "date_of_birth",
        _rx(r"(?:date\s+of\s+birth|\bDOB\b|\bborn\b)[\s:]*" + _DATE),
        90,
    ),
    RegexRule(
        "id_number",
        _rx(
            r"\b(?:id|card|license|licence|document|passport)\s+(?:number|#|no\.?)"
            r"[\s:#]*(?=[A-Z0-9-]*\d)([A-Z0-9-]+)"
        ),
        85,
    ),
    RegexRule("address", _rx(r"\baddress\b[ \t]*:?[ \t]*([A-Z0-9][^\n]+)"), 75),
)

RULESETS: dict[Category, tuple[FieldRule, ...]] = {
    Category.INVOICE: INVOICE_RULES,
    Category.RECEIPT: RECEIPT_RULES,
    Category.CV: CV_RULES,
    Category.ID_CARD: ID_CARD_RULES,
    Category.OTHER: (),
}
