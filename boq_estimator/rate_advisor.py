"""
External rate advisor - powered by Gemini.

Asks Gemini for a single market rate when the catalog has no match for a
BOQ line. The reply must be JSON like {"rate": 8500}.

Never raises: missing key, network errors and malformed replies all come
back as an AdvisorOutcome so the estimate carries on without a rate.
"""

import enum
import json
import logging
import math
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/%s:generateContent?key=%s"


class AdvisorStatus(str, enum.Enum):
    NOT_ATTEMPTED = "not_attempted"   # Catalog matched, advisor never asked
    SUGGESTED = "suggested"
    UNAVAILABLE = "unavailable"       # No API key configured
    FAILED = "failed"                 # Network error or malformed reply


@dataclass(frozen=True)
class AdvisorOutcome:
    status: AdvisorStatus
    rate: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def suggested(cls, rate: float) -> "AdvisorOutcome":
        return cls(AdvisorStatus.SUGGESTED, rate=rate)

    @classmethod
    def unavailable(cls) -> "AdvisorOutcome":
        return cls(AdvisorStatus.UNAVAILABLE, error="GEMINI_API_KEY not configured")

    @classmethod
    def failed(cls, error: str) -> "AdvisorOutcome":
        return cls(AdvisorStatus.FAILED, error=error)


class GeminiRateAdvisor:
    """
    Gets an AI market-rate estimate for one BOQ line.

    Usage:
        advisor = GeminiRateAdvisor(model="gemini-2.5-flash")
        outcome = advisor.suggest("Install solar panel array", "unit", api_key)
        if outcome.status == AdvisorStatus.SUGGESTED:
            rate = outcome.rate
    """

    def __init__(self, model: str = "gemini-2.5-flash", timeout: float = 30.0,
                 region: str = "India", currency: str = "INR"):
        self.model = model
        self.timeout = timeout
        self.region = region
        self.currency = currency

    def suggest(self, description: str, unit: str, api_key: Optional[str]) -> AdvisorOutcome:
        if not api_key:
            logger.info("No GEMINI_API_KEY - skipping AI rate suggestion")
            return AdvisorOutcome.unavailable()

        try:
            response_text = self._call_gemini(self._build_prompt(description, unit), api_key)
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")
            logger.warning("Gemini rate request failed for '%s...': HTTP %s %s",
                           description[:15], e.code, detail[:200])
            return AdvisorOutcome.failed(f"Gemini API error: HTTP {e.code}")
        except Exception as e:
            logger.warning("Gemini rate request failed for '%s...': %s", description[:15], e)
            return AdvisorOutcome.failed(f"Gemini call failed: {e}")

        rate = self._parse_response(response_text)
        if rate is None:
            logger.warning("Gemini returned no usable rate for '%s...'", description[:15])
            return AdvisorOutcome.failed("Malformed rate reply")
        return AdvisorOutcome.suggested(rate)

    def _build_prompt(self, description: str, unit: str) -> str:
        return f"""You are an expert quantity surveyor in {self.region}. For the BOQ item description below, provide an estimated market rate in {self.currency} for the specified unit of measurement.
- Analyze the description to understand the work involved.
- Consider standard construction costs in {self.region}.
- Respond ONLY with a valid JSON object in the format: {{"rate": <number>}}
- Do not include any other text, explanations, or markdown formatting.

**Description:** "{description}"
**Unit of Measurement:** "{unit}"
"""

    def _call_gemini(self, prompt: str, api_key: str) -> str:
        """Call Gemini API and return the reply text. Raises on failure."""
        url = GEMINI_URL % (self.model, api_key)

        payload = json.dumps({
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2,
                "responseMimeType": "application/json",
            },
        }).encode("utf-8")

        req = urllib.request.Request(
            url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            result = json.loads(response.read())
            return result["candidates"][0]["content"]["parts"][0]["text"]

    def _parse_response(self, response_text) -> Optional[float]:
        """Pull the numeric "rate" out of a reply, tolerating ```json fences."""
        if not response_text or not isinstance(response_text, str):
            return None
        cleaned = response_text.replace("```json", "").replace("```", "").strip()
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            return None

        if not isinstance(data, dict):
            return None
        rate = data.get("rate")
        # bool is an int subclass - {"rate": true} is not a price
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            return None
        if not math.isfinite(rate) or rate < 0:
            return None
        return float(rate)
