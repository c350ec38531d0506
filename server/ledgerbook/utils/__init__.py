from .money import parse_amount, quantize_money, require_amount
from .numbering import next_document_number

__all__ = ["next_document_number", "parse_amount", "quantize_money", "require_amount"]
