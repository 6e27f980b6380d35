"""HTML fragments for embedding the Invisible reCAPTCHA widget."""

import re
import secrets
import string
from html import escape
from typing import Optional
from urllib.parse import urlencode

API_URL = "https://www.google.com/recaptcha/api.js"

CALLBACK_PREFIX = "onCaptchaSubmit"

HIDE_BADGE_CSS = "<style>.grecaptcha-badge{display:none !important}</style>\n"

_ID_ALPHABET = string.ascii_letters + string.digits

_CALLBACK_ID_RE = re.compile(r"[A-Za-z0-9_]+")


def random_id(length: int = 16) -> str:
    """
    Generate a random alphanumeric identifier.

    Used to suffix the submit callback name so several buttons can be
    rendered on one page.

    Args:
        length: Number of characters (default: 16)

    Returns:
        Identifier made of ASCII letters and digits, safe to use in a JS name
    """
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def captcha_js_url(lang: Optional[str] = None) -> str:
    """Return the widget loader URL, localized with ``hl`` when ``lang`` is set."""
    if lang:
        return f"{API_URL}?{urlencode({'hl': lang})}"
    return API_URL


def script_tag(lang: Optional[str] = None) -> str:
    return f'<script src="{escape(captcha_js_url(lang))}" async defer></script>\n'


def submit_button(
    site_key: str,
    text: str,
    css_class: str = "",
    badge_position: str = "inline",
    callback_id: Optional[str] = None,
) -> str:
    """
    Render a submit button bound to the invisible widget.

    The widget calls ``onCaptchaSubmit<id>(token)`` once the challenge is
    passed; the callback submits the form enclosing the button.

    Args:
        site_key: Public site key, rendered as ``data-sitekey``
        text: Button label
        css_class: Extra CSS classes appended after ``g-recaptcha``
        badge_position: ``bottomright``, ``bottomleft`` or ``inline``.
            Passed to the widget as-is.
        callback_id: Callback suffix of letters, digits and underscores;
            a fresh random_id() when omitted

    Returns:
        The button followed by its inline callback script

    Raises:
        ValueError: If callback_id is not a valid identifier suffix
    """
    if callback_id is None:
        callback_id = random_id()
    elif not _CALLBACK_ID_RE.fullmatch(callback_id):
        raise ValueError(f"Invalid callback_id: {callback_id!r}")
    callback = CALLBACK_PREFIX + callback_id
    classes = "g-recaptcha"
    if css_class:
        classes += " " + css_class

    button = (
        f'<button class="{escape(classes)}"'
        f' data-badge="{escape(badge_position)}"'
        f' data-sitekey="{escape(site_key)}"'
        f' data-callback="{callback}">{escape(text)}</button>\n'
    )
    script = (
        f"<script>function {callback}(token) {{ "
        f'var form = document.querySelector("[data-callback={callback}]").closest("form"); '
        f"form.submit(); }}</script>"
    )
    return button + script


def hide_badge_style(hide_badge: bool) -> str:
    return HIDE_BADGE_CSS if hide_badge else ""
