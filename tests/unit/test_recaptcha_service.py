from urllib.parse import parse_qs

import httpx
import pytest

from app.config import Settings
from app.errors import ConfigurationMissing
from app.services.recaptcha_service import RecaptchaVerifier


def _settings(**overrides):
    values = {"recaptcha_secret": "s3cret"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.asyncio
async def test_verify_posts_form_and_parses_result():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "score": 0.9,
                "action": "submit",
                "hostname": "charityaron.vercel.app",
                "challenge_ts": "2024-05-01T10:30:00Z",
            },
        )

    verifier = RecaptchaVerifier(_settings(), transport=httpx.MockTransport(handler))

    result = await verifier.verify("tok-1", "203.0.113.7")

    assert result.success is True
    assert result.score == 0.9
    assert result.action == "submit"

    request = seen[0]
    assert str(request.url) == "https://www.google.com/recaptcha/api/siteverify"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {
        "secret": ["s3cret"],
        "response": ["tok-1"],
        "remoteip": ["203.0.113.7"],
    }


@pytest.mark.asyncio
async def test_unsuccessful_result_keeps_error_codes():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})
    )
    verifier = RecaptchaVerifier(_settings(), transport=transport)

    result = await verifier.verify("bad", "unknown")

    assert result.success is False
    assert result.score == 0.0
    assert result.error_codes == ["invalid-input-response"]


@pytest.mark.asyncio
async def test_success_must_be_literal_true():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"success": "true", "score": 0.9}))

    result = await RecaptchaVerifier(_settings(), transport=transport).verify("tok", "ip")

    assert result.success is False


@pytest.mark.asyncio
async def test_transport_error_fails_closed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    verifier = RecaptchaVerifier(_settings(), transport=httpx.MockTransport(handler))

    result = await verifier.verify("tok", "ip")

    assert result.success is False
    assert result.score == 0.0


@pytest.mark.asyncio
async def test_non_json_reply_fails_closed():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))

    result = await RecaptchaVerifier(_settings(), transport=transport).verify("tok", "ip")

    assert result.success is False


@pytest.mark.asyncio
async def test_missing_secret_is_configuration_error():
    verifier = RecaptchaVerifier(_settings(recaptcha_secret=""))

    with pytest.raises(ConfigurationMissing):
        await verifier.verify("tok", "ip")


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_score", ["NaN", "Infinity", "1.5", "-0.2", "true"])
async def test_non_finite_or_out_of_range_score_counts_as_zero(raw_score):
    body = '{"success": true, "score": %s}' % raw_score
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, content=body.encode(), headers={"content-type": "application/json"})
    )

    result = await RecaptchaVerifier(_settings(), transport=transport).verify("tok", "ip")

    assert result.success is True
    assert result.score == 0.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"success": True, "score": 0.9, "hostname": 123},
        {"success": True, "score": 0.9, "error-codes": 5},
        {"success": True, "score": 0.9, "action": ["submit"]},
    ],
)
async def test_malformed_reply_fails_closed(payload):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))

    result = await RecaptchaVerifier(_settings(), transport=transport).verify("tok", "ip")

    assert result.success is False
    assert result.score == 0.0
