"""FastAPI dependency for Invisible reCAPTCHA verification."""

import logging

try:
    from fastapi import HTTPException, Request
except ImportError:
    raise ImportError(
        "FastAPI is not installed. Install it with: pip install 'invisible-recaptcha[fastapi]'"
    )

from .client import AsyncInvisibleReCaptcha

logger = logging.getLogger(__name__)


class ReCaptchaVerify:
    """
    FastAPI dependency that verifies the submitted reCAPTCHA token.

    Reads the ``g-recaptcha-response`` form field and the client host from
    the request. Form parsing needs ``python-multipart``.

    Usage:
        from invisible_recaptcha import AsyncInvisibleReCaptcha
        from invisible_recaptcha.fastapi import ReCaptchaVerify

        captcha = AsyncInvisibleReCaptcha(SITE_KEY, SECRET_KEY)
        recaptcha = ReCaptchaVerify(captcha)

        @app.post('/contact', dependencies=[Depends(recaptcha)])
        async def contact(message: str = Form(...)):
            return {"sent": True}
    """

    def __init__(self, recaptcha: AsyncInvisibleReCaptcha, auto_error: bool = True):
        """
        Initialize the dependency.

        Args:
            recaptcha: Client used for verification
            auto_error: If True, raise HTTPException(400) on a failed check.
                       If False, return False instead.
        """
        self.recaptcha = recaptcha
        self.auto_error = auto_error

    async def __call__(self, request: Request) -> bool:
        """
        Verify the token posted with the request.

        Returns:
            True if verified, False if not (when auto_error=False)

        Raises:
            HTTPException: If verification fails and auto_error=True
            httpx.HTTPError: If the siteverify endpoint cannot be reached
        """
        if await self.recaptcha.verify_request(request):
            return True

        client_host = request.client.host if request.client else None
        logger.info("Rejected reCAPTCHA submission from %s", client_host)
        if self.auto_error:
            raise HTTPException(status_code=400, detail="reCAPTCHA verification failed")
        return False
