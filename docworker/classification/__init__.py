from docworker.classification.classifier import PatternClassifier
from docworker.classification.models import Category, ClassificationResult

__all__ = ["Category", "ClassificationResult", "PatternClassifier"]
