from docworker.fields.extractor import FieldExtractor
from docworker.fields.models import ExtractedField, MoneyValue, NumberValue

__all__ = ["ExtractedField", "FieldExtractor", "MoneyValue", "NumberValue"]
