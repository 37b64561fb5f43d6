"""Form gateway: the per-request validation and persistence pipeline"""
import json
import logging
from typing import Callable, Optional
from urllib.parse import urlsplit

from fastapi import Request

from app.config import Settings
from app.errors import (
    BadContentType,
    ForbiddenOrigin,
    RateLimited,
    ValidationFailed,
    VerificationFailed,
    VerificationScoreTooLow,
)
from app.models.forms import FormSchema, SubmitResponse
from app.services.rate_limiter import RateLimitStore
from app.services.recaptcha_service import RecaptchaVerifier
from app.services.sheets_service import SheetsAppender, utc_timestamp
from app.utils.validation import sanitize_submission, validate_submission

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Best-effort client address used as the rate-limit key"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def _origin_of(url: str) -> Optional[str]:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def request_origin(request: Request) -> Optional[str]:
    """Declared origin, falling back to the origin part of the Referer"""
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/")

    referer = request.headers.get("referer")
    if referer:
        return _origin_of(referer)
    return None


class FormGateway:
    """
    Runs a submission through every gate in order:
    origin, content type, rate limit, validation, sanitization,
    reCAPTCHA and finally the sheet append.

    Each gate raises a GatewayError subclass; nothing is persisted
    unless all of them pass.
    """

    def __init__(
        self,
        settings: Settings,
        schema: FormSchema,
        rate_limiter: RateLimitStore,
        verifier: RecaptchaVerifier,
        store: SheetsAppender,
        timestamp: Callable[[], str] = utc_timestamp
    ):
        self.settings = settings
        self.schema = schema
        self.rate_limiter = rate_limiter
        self.verifier = verifier
        self.store = store
        self.timestamp = timestamp

    def check_origin(self, request: Request) -> None:
        origin = request_origin(request)
        if not origin or origin != self.settings.normalized_origin:
            logger.warning(f"Forbidden origin: {origin!r}")
            raise ForbiddenOrigin()

    def check_content_type(self, request: Request) -> None:
        content_type = request.headers.get("content-type", "")
        if "application/json" not in content_type.lower():
            raise BadContentType()

    def check_rate_limit(self, client_ip: str) -> None:
        decision = self.rate_limiter.hit(
            client_ip,
            self.settings.rate_limit_max,
            self.settings.rate_limit_window_seconds
        )
        if not decision.allowed:
            raise RateLimited()

    async def read_body(self, request: Request):
        raw = await request.body()
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            raise ValidationFailed("Request body must be valid JSON") from None

    async def handle(self, request: Request) -> SubmitResponse:
        """Process one POSTed submission"""
        self.check_origin(request)
        self.check_content_type(request)

        client_ip = get_client_ip(request)
        self.check_rate_limit(client_ip)

        body = await self.read_body(request)
        validate_submission(body, self.schema)
        submission = sanitize_submission(body, self.schema)

        result = await self.verifier.verify(submission[self.schema.token_field], client_ip)
        if not result.success:
            raise VerificationFailed()
        if result.score < self.settings.min_recaptcha_score:
            logger.warning(f"reCAPTCHA score {result.score} below {self.settings.min_recaptcha_score}")
            raise VerificationScoreTooLow()

        row = [self.timestamp()] + [submission[name] for name in self.schema.field_names]
        await self.store.append_row(row)

        logger.info(f"Accepted {self.schema.name} submission from {client_ip}")
        return SubmitResponse(ok=True)
