"""Security helpers for public endpoints"""

from .captcha import CaptchaVerifier, CaptchaResult, CaptchaStatus

__all__ = ["CaptchaVerifier", "CaptchaResult", "CaptchaStatus"]
