"""Invisible reCAPTCHA clients: widget markup and server-side token verification."""

import dataclasses
import inspect
import logging
from typing import Any, List, Mapping, Optional, Union

import httpx

from invisible_recaptcha import markup
from invisible_recaptcha.types import CaptchaOptions, FormRequest, SiteVerifyResponse

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"

RESPONSE_FIELD = "g-recaptcha-response"

OptionsLike = Union[CaptchaOptions, Mapping[str, Any], None]


def _coerce_options(options: OptionsLike) -> CaptchaOptions:
    if options is None:
        return CaptchaOptions()
    if isinstance(options, CaptchaOptions):
        return dataclasses.replace(options, extra=dict(options.extra))
    if isinstance(options, Mapping):
        return CaptchaOptions.from_dict(options)
    raise TypeError(
        f"options must be a CaptchaOptions or a mapping, got {type(options).__name__}"
    )


def _parse_verify_response(response: httpx.Response) -> SiteVerifyResponse:
    try:
        data = response.json()
    except ValueError:
        logger.warning(
            "siteverify returned a non-JSON body (status %s)", response.status_code
        )
        return SiteVerifyResponse(success=False)

    if not isinstance(data, dict):
        logger.warning("siteverify returned %s instead of an object", type(data).__name__)
        return SiteVerifyResponse(success=False)

    result = SiteVerifyResponse.from_dict(data)
    if not result.success and result.error_codes:
        logger.info("reCAPTCHA verification failed: %s", ", ".join(result.error_codes))
    return result


class _BaseReCaptcha:
    """Configuration and rendering shared by the sync and async clients."""

    def __init__(self, site_key: str, secret_key: str, options: OptionsLike = None):
        self._site_key = site_key
        self._secret_key = secret_key
        self._options = _coerce_options(options)

    @property
    def site_key(self) -> str:
        return self._site_key

    @property
    def secret_key(self) -> str:
        return self._secret_key

    @property
    def options(self) -> CaptchaOptions:
        return self._options

    @options.setter
    def options(self, options: OptionsLike) -> None:
        self._options = _coerce_options(options)

    def get_option(self, key: str, default: Any = None) -> Any:
        """Return option ``key``, or ``default`` when it was never set."""
        return self._options.get(key, default)

    def set_option(self, key: str, value: Any) -> None:
        self._options.set(key, value)

    def _request_timeout(self) -> Any:
        # Injected clients keep the timeout their owner gave them
        if self._owns_client:
            return self._options.timeout
        return httpx.USE_CLIENT_DEFAULT

    # ============ MARKUP ============

    def captcha_js_url(self, lang: Optional[str] = None) -> str:
        return markup.captcha_js_url(lang)

    def render_script_tag(self, lang: Optional[str] = None) -> str:
        """Render the widget loader ``<script>`` tag, optionally localized."""
        return markup.script_tag(lang)

    def render_submit_button(
        self, text: str, css_class: str = "", badge_position: str = "inline"
    ) -> str:
        """
        Render a submit button and its uniquely named callback.

        Args:
            text: Button label
            css_class: Extra CSS classes for the button
            badge_position: ``bottomright``, ``bottomleft`` or ``inline``

        Returns:
            HTML for the button followed by the callback ``<script>``
        """
        return markup.submit_button(self._site_key, text, css_class, badge_position)

    def render_hide_badge_style(self) -> str:
        """Render the badge-hiding rule when ``hide_badge`` is on, else ``""``."""
        return markup.hide_badge_style(bool(self._options.hide_badge))

    def _verify_payload(self, token: str, client_ip: Optional[str]) -> dict:
        payload = {"secret": self._secret_key, "response": token}
        if client_ip:
            payload["remoteip"] = client_ip
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(site_key={self._site_key!r})"


class InvisibleReCaptcha(_BaseReCaptcha):
    """
    Synchronous Invisible reCAPTCHA client.

    Renders the widget markup and verifies submitted tokens with a blocking
    ``httpx.Client``. ``httpx.Client`` is safe to share between threads, so
    one instance can serve concurrent requests.

    Example:
        >>> captcha = InvisibleReCaptcha("site-key", "secret-key", {"hide_badge": True})
        >>> html = captcha.render_script_tag("fr") + captcha.render_submit_button("Send")
        >>> captcha.verify(form["g-recaptcha-response"], request.remote_addr)
    """

    def __init__(
        self,
        site_key: str,
        secret_key: str,
        options: OptionsLike = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            site_key: Public site key, embedded in rendered HTML
            secret_key: Private key, sent only to the siteverify endpoint
            options: CaptchaOptions or a plain mapping of options
            http_client: Optional httpx.Client to use instead of an owned one.
                An injected client is never closed by this object.
        """
        super().__init__(site_key, secret_key, options)
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(timeout=self._options.timeout)
        self._client = http_client

    @property
    def http_client(self) -> httpx.Client:
        return self._client

    @http_client.setter
    def http_client(self, client: httpx.Client) -> None:
        if self._owns_client:
            self._client.close()
        self._client = client
        self._owns_client = False

    def site_verify(self, token: str, client_ip: Optional[str] = None) -> SiteVerifyResponse:
        """
        POST a token to the siteverify endpoint and parse the reply.

        Args:
            token: Token produced by the widget
            client_ip: Optional end-user IP, sent as ``remoteip``

        Returns:
            SiteVerifyResponse; ``success`` is False for malformed bodies

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with a non-2xx status
            httpx.HTTPError: On timeouts and connection failures
        """
        response = self._client.post(
            VERIFY_URL,
            data=self._verify_payload(token, client_ip),
            timeout=self._request_timeout(),
        )
        response.raise_for_status()
        return _parse_verify_response(response)

    def verify(self, token: Optional[str], client_ip: Optional[str]) -> bool:
        """
        Verify a widget token.

        Empty tokens are rejected without contacting the endpoint.

        Returns:
            True only if the endpoint replied ``{"success": true}``

        Raises:
            httpx.HTTPError: If the verification request itself fails
        """
        if not token:
            logger.debug("Empty reCAPTCHA token, skipping verification")
            return False
        return self.site_verify(token, client_ip).success

    def verify_request(self, request: FormRequest) -> bool:
        """Verify the token posted in ``request``'s ``g-recaptcha-response`` field."""
        return self.verify(request.form.get(RESPONSE_FIELD), request.remote_addr)

    def close(self) -> None:
        """Close the HTTP client if this object created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "InvisibleReCaptcha":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncInvisibleReCaptcha(_BaseReCaptcha):
    """
    Asynchronous Invisible reCAPTCHA client over ``httpx.AsyncClient``.

    Rendering is identical to InvisibleReCaptcha; the verification methods
    are coroutines.

    Example:
        >>> async with AsyncInvisibleReCaptcha("site-key", "secret-key") as captcha:
        ...     ok = await captcha.verify(token, "203.0.113.7")
    """

    def __init__(
        self,
        site_key: str,
        secret_key: str,
        options: OptionsLike = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(site_key, secret_key, options)
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=self._options.timeout)
        self._client = http_client
        self._replaced_clients: List[httpx.AsyncClient] = []

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._client

    @http_client.setter
    def http_client(self, client: httpx.AsyncClient) -> None:
        # Closing is async, so a replaced owned client waits for aclose()
        if self._owns_client:
            self._replaced_clients.append(self._client)
        self._client = client
        self._owns_client = False

    async def site_verify(
        self, token: str, client_ip: Optional[str] = None
    ) -> SiteVerifyResponse:
        """
        POST a token to the siteverify endpoint and parse the reply.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with a non-2xx status
            httpx.HTTPError: On timeouts and connection failures
        """
        response = await self._client.post(
            VERIFY_URL,
            data=self._verify_payload(token, client_ip),
            timeout=self._request_timeout(),
        )
        response.raise_for_status()
        return _parse_verify_response(response)

    async def verify(self, token: Optional[str], client_ip: Optional[str]) -> bool:
        """Verify a widget token; empty tokens are rejected without a request."""
        if not token:
            logger.debug("Empty reCAPTCHA token, skipping verification")
            return False
        result = await self.site_verify(token, client_ip)
        return result.success

    async def verify_request(self, request: Any) -> bool:
        """
        Verify the token posted with ``request``.

        Accepts Starlette-style requests (awaitable ``form()`` and
        ``client.host``) as well as FormRequest objects.
        """
        form = request.form
        if callable(form):
            form = form()
            if inspect.isawaitable(form):
                form = await form

        client_ip = getattr(request, "remote_addr", None)
        if client_ip is None:
            client = getattr(request, "client", None)
            client_ip = client.host if client else None

        token = form.get(RESPONSE_FIELD)
        return await self.verify(token if isinstance(token, str) else None, client_ip)

    async def aclose(self) -> None:
        """Close the HTTP clients this object created, including replaced ones."""
        while self._replaced_clients:
            await self._replaced_clients.pop().aclose()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncInvisibleReCaptcha":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
