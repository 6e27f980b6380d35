"""Type definitions for the Invisible reCAPTCHA helper."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Protocol

# Option names accepted by CaptchaOptions.from_dict besides the field names
_OPTION_ALIASES = {"hideBadge": "hide_badge"}


@dataclass
class CaptchaOptions:
    """Configuration for a reCAPTCHA client.

    Unrecognized options are kept in ``extra`` so host applications can
    carry their own settings alongside the recognized ones.
    """

    timeout: float = 5.0  # seconds, for the owned HTTP client
    hide_badge: bool = False  # render the badge-hiding style rule
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CaptchaOptions":
        """Build options from a plain mapping such as a settings dict."""
        options = cls()
        for key, value in data.items():
            options.set(key, value)
        return options

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = dict(self.extra)
        result["timeout"] = self.timeout
        result["hide_badge"] = self.hide_badge
        return result

    def get(self, key: str, default: Any = None) -> Any:
        name = _OPTION_ALIASES.get(key, key)
        if name in _NAMED_OPTIONS:
            return getattr(self, name)
        return self.extra.get(key, default)

    def set(self, key: str, value: Any) -> None:
        name = _OPTION_ALIASES.get(key, key)
        if name in _NAMED_OPTIONS:
            setattr(self, name, value)
        else:
            self.extra[key] = value


_NAMED_OPTIONS = frozenset(f.name for f in fields(CaptchaOptions)) - {"extra"}


@dataclass
class SiteVerifyResponse:
    """Response from the siteverify endpoint."""

    success: bool
    error_codes: List[str] = field(default_factory=list)
    challenge_ts: Optional[str] = None
    hostname: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteVerifyResponse":
        error_codes = data.get("error-codes") or []
        if not isinstance(error_codes, list):
            error_codes = [str(error_codes)]
        return cls(
            success=data.get("success") is True,
            error_codes=[str(code) for code in error_codes],
            challenge_ts=data.get("challenge_ts"),
            hostname=data.get("hostname"),
        )


class FormRequest(Protocol):
    """Inbound request carrying submitted form fields and the caller address.

    Werkzeug (and so Flask) request objects match this shape as-is.
    """

    @property
    def form(self) -> Mapping[str, Any]: ...

    @property
    def remote_addr(self) -> Optional[str]: ...
