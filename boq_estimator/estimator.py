"""
BOQ Estimation Orchestrator.

Prices parsed BOQ rows one at a time, in sheet order:
    1. Tokenize the description and look for a catalog rate with the same unit
    2. No catalog hit → queue a Gemini rate request and wait for it
    3. total = rate × quantity (None when no rate was found)
    4. project_total += total

Rows are processed one after another. The advisor queue is shared by every
upload in the process, and persistence needs the complete ordered batch.

Output: EstimationResult - priced items in sheet order, project total and
the rows the parser skipped.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .boq_parser import RowDiagnostic, SourceRow
from .rate_advisor import AdvisorOutcome, AdvisorStatus
from .rate_matcher import RateMatcher
from .request_queue import RateLimitedQueue
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


class RateSource(str, enum.Enum):
    DATABASE = "Database"
    AI_ESTIMATE = "AI Estimate"
    MANUAL = "Manual"


@dataclass(frozen=True)
class PricedItem:
    item_no: str
    description: str
    quantity: float
    unit: str
    rate: Optional[float]
    total: Optional[float]
    is_ai_suggestion: bool
    source: RateSource
    advisor_status: AdvisorStatus = AdvisorStatus.NOT_ATTEMPTED

    def as_dict(self) -> dict:
        return {
            "item_no": self.item_no,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "rate": self.rate,
            "total": self.total,
            "is_ai_suggestion": self.is_ai_suggestion,
            "source": self.source.value,
            "advisor_status": self.advisor_status.value,
        }


@dataclass
class EstimationResult:
    items: List[PricedItem] = field(default_factory=list)
    project_total: float = 0.0
    skipped_rows: List[RowDiagnostic] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "items": [item.as_dict() for item in self.items],
            "project_total": self.project_total,
            "skipped_rows": [d.as_dict() for d in self.skipped_rows],
        }


class BoqEstimator:
    """
    Prices BOQ rows from the catalog, falling back to the rate advisor.

    Usage:
        estimator = BoqEstimator(advisor_queue, GeminiRateAdvisor(), api_key)
        result = estimator.estimate(parsed.rows, load_catalog(db))
    """

    def __init__(self, advisor_queue: RateLimitedQueue, advisor, api_key: Optional[str] = None):
        self.advisor_queue = advisor_queue
        self.advisor = advisor
        self.api_key = api_key

    def estimate(self, rows: List[SourceRow], catalog, skipped_rows: List[RowDiagnostic] = None) -> EstimationResult:
        matcher = RateMatcher(catalog)
        result = EstimationResult(skipped_rows=list(skipped_rows or []))

        for row in rows:
            item = self.price_row(row, matcher)
            result.items.append(item)
            if item.total is not None:
                result.project_total += item.total

        ai_count = sum(1 for item in result.items if item.is_ai_suggestion)
        unpriced = sum(1 for item in result.items if item.rate is None)
        logger.info(
            "Estimated %d BOQ items (%d AI, %d unpriced), project total %.2f",
            len(result.items), ai_count, unpriced, result.project_total,
        )
        return result

    def price_row(self, row: SourceRow, matcher: RateMatcher) -> PricedItem:
        match = matcher.match(tokenize(row.description), row.unit)
        if match:
            return self._priced(row, match.rate_value, RateSource.DATABASE)

        outcome = self._ask_advisor(row)
        if outcome.status == AdvisorStatus.SUGGESTED:
            return self._priced(row, outcome.rate, RateSource.AI_ESTIMATE,
                                is_ai_suggestion=True, advisor_status=outcome.status)
        return self._priced(row, None, RateSource.MANUAL, advisor_status=outcome.status)

    def _ask_advisor(self, row: SourceRow) -> AdvisorOutcome:
        logger.info("[AI Queue] Queuing rate request for: '%s...' (%d ahead)",
                    row.description[:30], self.advisor_queue.pending)
        try:
            future = self.advisor_queue.enqueue(
                lambda: self.advisor.suggest(row.description, row.unit, self.api_key)
            )
            return future.result()
        except Exception as e:
            logger.warning("Rate advisor task failed for row %d: %s", row.row_number, e)
            return AdvisorOutcome.failed(str(e))

    @staticmethod
    def _priced(row: SourceRow, rate: Optional[float], source: RateSource,
                is_ai_suggestion: bool = False,
                advisor_status: AdvisorStatus = AdvisorStatus.NOT_ATTEMPTED) -> PricedItem:
        total = rate * row.quantity if rate is not None else None
        return PricedItem(
            item_no=row.item_no,
            description=row.description,
            quantity=row.quantity,
            unit=row.unit,
            rate=rate,
            total=total,
            is_ai_suggestion=is_ai_suggestion,
            source=source,
            advisor_status=advisor_status,
        )
