"""Form submission endpoints"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from functools import lru_cache
import logging

from app.config import Settings, get_settings
from app.errors import MethodNotAllowed
from app.middleware.cors import cors_headers
from app.models.forms import SubmitResponse, get_form_schema
from app.services.gateway import FormGateway
from app.services.rate_limiter import InMemoryRateLimitStore
from app.services.recaptcha_service import RecaptchaVerifier
from app.services.sheets_service import SheetsAppender

logger = logging.getLogger(__name__)
router = APIRouter()


def build_gateway(settings: Settings) -> FormGateway:
    """Wire a gateway with the production dependencies"""
    schema = get_form_schema(settings.form_schema)
    return FormGateway(
        settings=settings,
        schema=schema,
        rate_limiter=InMemoryRateLimitStore(),
        verifier=RecaptchaVerifier(settings),
        store=SheetsAppender(settings, schema.sheet_range)
    )


@lru_cache()
def get_gateway() -> FormGateway:
    """Process-wide gateway; its rate-limit store lives as long as the process"""
    return build_gateway(get_settings())


@router.options("/submit")
async def submit_preflight(settings: Settings = Depends(get_settings)):
    """CORS preflight (PUBLIC endpoint)"""
    return Response(status_code=200, headers=cors_headers(settings, preflight=True))


@router.post("/submit", response_model=SubmitResponse, response_model_exclude_none=True)
async def submit_form(request: Request, gateway: FormGateway = Depends(get_gateway)):
    """Handle contact form submission (PUBLIC endpoint)"""
    return await gateway.handle(request)


@router.api_route("/submit", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def submit_method_not_allowed():
    raise MethodNotAllowed()
