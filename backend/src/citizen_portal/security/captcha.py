"""reCAPTCHA / hCaptcha token verification.

Tokens are verified server-side against the provider's ``siteverify``
endpoint. Verification is only enforced when both the site key and the
secret key are configured.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)


class CaptchaStatus(str, enum.Enum):
    VERIFIED = "verified"
    ERROR = "error"


@dataclass(frozen=True)
class CaptchaResult:
    """Outcome of a captcha verification.

    Attributes:
        success: Whether the request may proceed
        status: verified or error
        error_codes: Provider error codes, if any
        message: Internal description, never returned to the client
    """
    success: bool
    status: CaptchaStatus
    error_codes: List[str] = field(default_factory=list)
    message: Optional[str] = None


class CaptchaVerifier:
    """Verifies captcha tokens with the provider over HTTP.

    Example:
        verifier = CaptchaVerifier(site_key, secret_key, verify_url)
        if verifier.is_configured:
            result = await verifier.verify(token, remote_ip="203.0.113.7")
    """

    def __init__(
        self,
        site_key: Optional[str],
        secret_key: Optional[str],
        verify_url: str = "https://www.google.com/recaptcha/api/siteverify",
        timeout: float = 5.0,
        production: bool = False,
    ):
        self.site_key = site_key
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.timeout = timeout

        if not self.is_configured:
            if site_key or secret_key:
                logger.warning(
                    "Only one of RECAPTCHA_SITE_KEY and RECAPTCHA_SECRET_KEY is set. "
                    "Captcha verification is disabled."
                )
            elif production:
                logger.warning("Captcha is not configured. Submissions are accepted without captcha.")

    @property
    def is_configured(self) -> bool:
        return bool(self.site_key and self.secret_key)

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> CaptchaResult:
        """Verify ``token`` with the provider.

        Callers check ``is_configured`` first; an unconfigured verifier has
        no secret to send.

        Args:
            token: Token posted by the client widget
            remote_ip: Caller address, forwarded to the provider when known

        Returns:
            CaptchaResult: never raises for provider or network failures
        """
        if not token:
            return CaptchaResult(success=False, status=CaptchaStatus.ERROR, message="Captcha token is missing")

        data = {"secret": self.secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.verify_url, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Captcha verification request failed: {type(e).__name__}: {e}")
            return CaptchaResult(
                success=False,
                status=CaptchaStatus.ERROR,
                message="Captcha verification failed due to network error",
            )

        if response.status_code != 200:
            logger.error(f"Captcha verification returned HTTP {response.status_code}")
            return CaptchaResult(
                success=False,
                status=CaptchaStatus.ERROR,
                message="Captcha verification failed due to network error",
            )

        try:
            payload = response.json()
        except ValueError:
            logger.error("Captcha verification returned a non-JSON body")
            return CaptchaResult(
                success=False,
                status=CaptchaStatus.ERROR,
                message="Captcha provider returned an invalid response",
            )

        if not isinstance(payload, dict) or payload.get("success") is not True:
            error_codes = payload.get("error-codes", []) if isinstance(payload, dict) else []
            return CaptchaResult(
                success=False,
                status=CaptchaStatus.ERROR,
                error_codes=list(error_codes),
                message="Captcha verification failed",
            )

        return CaptchaResult(success=True, status=CaptchaStatus.VERIFIED)
