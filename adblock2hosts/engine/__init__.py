"""Engine components: convert, fetch, dedup, export."""

from .converter import Accepted, ConvertedEntry, RawRule, Rejected, RuleConverter, convert, convert_rule
from .dedup import DeduplicationStore
from .fetcher import BadStatusError, FetchError, FetchResponse, Fetcher, SourceTransportError
from .thread_pool import ThreadPoolManager

__all__ = [
    "Accepted",
    "BadStatusError",
    "ConvertedEntry",
    "DeduplicationStore",
    "FetchError",
    "FetchResponse",
    "Fetcher",
    "RawRule",
    "Rejected",
    "RuleConverter",
    "SourceTransportError",
    "ThreadPoolManager",
    "convert",
    "convert_rule",
]
