"""Unit tests for captcha verification (provider mocked with respx)"""

import logging

import httpx
import pytest
import respx

from citizen_portal.security import CaptchaStatus, CaptchaVerifier

VERIFY_URL = "https://captcha.test/siteverify"


def make_verifier(**overrides) -> CaptchaVerifier:
    options = {
        "site_key": "site-key",
        "secret_key": "secret-key",
        "verify_url": VERIFY_URL,
        "timeout": 1.0,
        "production": True,
    }
    options.update(overrides)
    return CaptchaVerifier(**options)


class TestCaptchaConfiguration:

    def test_configured_needs_both_keys(self):
        assert make_verifier().is_configured is True
        assert make_verifier(site_key=None).is_configured is False
        assert make_verifier(secret_key="").is_configured is False

    def test_partial_configuration_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="citizen_portal.security.captcha"):
            verifier = make_verifier(secret_key=None, production=False)

        assert verifier.is_configured is False
        assert "Captcha verification is disabled" in caplog.text

    def test_unconfigured_in_production_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="citizen_portal.security.captcha"):
            make_verifier(site_key=None, secret_key=None, production=True)

        assert "accepted without captcha" in caplog.text

    def test_unconfigured_outside_production_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="citizen_portal.security.captcha"):
            make_verifier(site_key=None, secret_key=None, production=False)

        assert caplog.records == []

    @pytest.mark.asyncio
    async def test_missing_token_fails_without_network(self):
        with respx.mock(assert_all_called=False) as router:
            route = router.post(VERIFY_URL).respond(200, json={"success": True})
            result = await make_verifier().verify("")

        assert result.success is False
        assert not route.called


class TestCaptchaVerification:

    @pytest.mark.asyncio
    async def test_successful_verification(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.post(VERIFY_URL).respond(200, json={"success": True})

            result = await make_verifier().verify("good-token", remote_ip="203.0.113.7")

        assert result.success is True
        assert result.status == CaptchaStatus.VERIFIED
        body = route.calls[0].request.content.decode("utf-8")
        assert "secret=secret-key" in body
        assert "response=good-token" in body
        assert "remoteip=203.0.113.7" in body

    @pytest.mark.asyncio
    async def test_remote_ip_omitted_when_unknown(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.post(VERIFY_URL).respond(200, json={"success": True})

            await make_verifier().verify("good-token")

        assert "remoteip" not in route.calls[0].request.content.decode("utf-8")

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(VERIFY_URL).respond(200, json={"success": False, "error-codes": ["invalid-input-response"]})

            result = await make_verifier().verify("bad-token")

        assert result.success is False
        assert result.error_codes == ["invalid-input-response"]

    @pytest.mark.asyncio
    async def test_provider_http_error(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(VERIFY_URL).respond(502)

            result = await make_verifier().verify("token")

        assert result.success is False
        assert result.status == CaptchaStatus.ERROR

    @pytest.mark.asyncio
    async def test_network_failure(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(VERIFY_URL).mock(side_effect=httpx.ConnectError("unreachable"))

            result = await make_verifier().verify("token")

        assert result.success is False
        assert result.status == CaptchaStatus.ERROR

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(VERIFY_URL).respond(200, text="<html>oops</html>")

            result = await make_verifier().verify("token")

        assert result.success is False
