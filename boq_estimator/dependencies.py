from fastapi import Request

from .config import settings
from .estimator import BoqEstimator
from .rate_advisor import GeminiRateAdvisor
from .request_queue import RateLimitedQueue


def get_advisor_queue(request: Request) -> RateLimitedQueue:
    """The process-wide advisor queue created in main.py."""
    return request.app.state.advisor_queue


def get_estimator(request: Request) -> BoqEstimator:
    advisor = GeminiRateAdvisor(
        model=settings.GEMINI_MODEL,
        timeout=settings.ADVISOR_TIMEOUT_SECONDS,
        region=settings.RATE_REGION,
        currency=settings.RATE_CURRENCY,
    )
    return BoqEstimator(get_advisor_queue(request), advisor, api_key=settings.GEMINI_API_KEY)
