"""GPTZero AI-generated text detection client."""

import httpx
import structlog

from video_analyzer.core.exceptions import ConfigurationError, DetectionError

logger = structlog.get_logger(__name__)


class GPTZeroDetector:
    """Score a text span with GPTZero's ``average_generated_prob``."""

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient,
        url: str = "https://api.gptzero.me/v2/predict/text",
        timeout_seconds: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.url = url
        self.timeout_seconds = timeout_seconds

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if no API key is set."""
        if not self.api_key:
            raise ConfigurationError("GPTZero API key not configured")

    async def detect(self, text: str) -> float:
        """Return the probability (0-1) that ``text`` is AI-generated.

        Raises:
            ConfigurationError: If no API key is configured
            DetectionError: If the request fails or the response has no
                usable probability
        """
        self.ensure_configured()

        try:
            response = await self.client.post(
                self.url,
                json={"document": text},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise DetectionError(
                f"GPTZero request failed ({exc.response.status_code})"
            ) from exc
        except httpx.RequestError as exc:
            raise DetectionError(f"Unable to reach GPTZero: {exc}") from exc
        except ValueError as exc:
            raise DetectionError("GPTZero returned invalid JSON") from exc

        return self._parse_probability(payload)

    @staticmethod
    def _parse_probability(payload: object) -> float:
        try:
            probability = payload["documents"][0]["average_generated_prob"]  # type: ignore[index]
        except (KeyError, IndexError, TypeError) as exc:
            raise DetectionError("GPTZero response missing average_generated_prob") from exc

        if isinstance(probability, bool) or not isinstance(probability, (int, float)):
            raise DetectionError(f"GPTZero returned a non-numeric probability: {probability!r}")
        if not 0.0 <= probability <= 1.0:
            raise DetectionError(f"GPTZero probability out of range: {probability}")
        return float(probability)
