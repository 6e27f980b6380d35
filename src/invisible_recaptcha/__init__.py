"""Invisible reCAPTCHA for Python web apps - render the widget, verify the token."""

__version__ = "0.1.0"

from invisible_recaptcha.client import (
    RESPONSE_FIELD,
    VERIFY_URL,
    AsyncInvisibleReCaptcha,
    InvisibleReCaptcha,
)
from invisible_recaptcha.markup import API_URL
from invisible_recaptcha.types import CaptchaOptions, FormRequest, SiteVerifyResponse

__all__ = [
    "InvisibleReCaptcha",
    "AsyncInvisibleReCaptcha",
    "CaptchaOptions",
    "FormRequest",
    "SiteVerifyResponse",
    "API_URL",
    "VERIFY_URL",
    "RESPONSE_FIELD",
    "__version__",
]
