from .customer import Customer
from .quote_run import QuoteRun, QuoteRunStatus
from .quote_result import QuoteResult

__all__ = [
    "Customer",
    "QuoteRun",
    "QuoteRunStatus",
    "QuoteResult",
]

