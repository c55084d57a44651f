from app.parsers.structured import ParseResult
from app.parsers.structured import parse_structured

__all__ = ["ParseResult", "parse_structured"]
