"""reCAPTCHA v3 verification service"""
import httpx
import math
from typing import Optional
import logging

from app.config import Settings
from app.errors import ConfigurationMissing
from app.models.forms import VerificationResult

logger = logging.getLogger(__name__)


def _parse_score(raw) -> float:
    """Score in [0, 1]; anything else (missing, NaN, out of range) counts as 0"""
    if isinstance(raw, bool):
        return 0.0
    try:
        score = float(raw or 0)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(score) or not 0.0 <= score <= 1.0:
        return 0.0
    return score


class RecaptchaVerifier:
    """Checks tokens against Google's siteverify endpoint"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    async def verify(self, token: str, remote_ip: str) -> VerificationResult:
        """
        Verify a reCAPTCHA token

        Args:
            token: Token produced by the browser widget
            remote_ip: Client address forwarded to Google

        Returns:
            VerificationResult; transport and decode failures yield an
            unsuccessful result with score 0

        Raises:
            ConfigurationMissing: If no secret key is configured
        """
        secret = self.settings.recaptcha_secret
        if not secret:
            raise ConfigurationMissing("RECAPTCHA_SECRET not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self._transport
            ) as client:
                response = await client.post(
                    self.settings.recaptcha_verify_url,
                    data={
                        "secret": secret,
                        "response": token,
                        "remoteip": remote_ip
                    }
                )

            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"unexpected siteverify payload: {type(data).__name__}")

            result = VerificationResult(
                success=data.get("success") is True,
                score=_parse_score(data.get("score")),
                action=data.get("action"),
                hostname=data.get("hostname"),
                challenge_ts=data.get("challenge_ts"),
                error_codes=[str(code) for code in data.get("error-codes") or []]
            )

        except (httpx.HTTPError, ValueError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            logger.error(f"reCAPTCHA verification error: {e}")
            return VerificationResult(success=False, score=0.0)

        if not result.success:
            logger.warning(f"reCAPTCHA rejected token: {result.error_codes}")
        return result
