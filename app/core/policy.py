"""Edge policy: the configuration shared by the locale and rate limit guards.

The policy is resolved once at startup and handed to each guard's
constructor, so tests can build guards with arbitrary parameters without
touching environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from app.core.config import AppSettings, parse_csv
from app.core.errors import ConfigurationAppError


def parse_aliases(value: str | None) -> dict[str, str]:
    """Parse ``from=to`` pairs into a mapping of path aliases.

    Raises:
        ConfigurationAppError: If a pair is missing either side.
    """
    aliases: dict[str, str] = {}
    for pair in parse_csv(value):
        source, sep, target = pair.partition("=")
        source, target = source.strip("/ "), target.strip("/ ")
        if not sep or not source or not target:
            raise ConfigurationAppError(
                code="invalid_locale_alias",
                message=f"Locale path alias must look like 'from=to', got {pair!r}",
                details={"field": "locale_path_aliases", "actual_value": pair},
            )
        aliases[source] = target
    return aliases


def _normalize_prefix(prefix: str) -> str:
    return "/" + prefix.strip("/")


def _has_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


@dataclass(frozen=True)
class EdgePolicy:
    """Immutable configuration for the edge guards.

    Attributes:
        supported_locales: Closed set of locale codes, in declaration order.
        default_locale: Locale used for redirects; member of supported_locales.
        api_prefix: Prefix of REST routes; these are never locale-prefixed.
        auth_prefix: Prefix of authentication routes; never rate limited.
        excluded_prefixes: Static asset prefixes ignored by both guards.
        limit: Requests admitted per client per window.
        window_ms: Window length in milliseconds.
        rate_limit_enabled: Turns the rate limit guard into a pass-through.
        locale_aliases: Paths below the locale segment served by another path.
    """

    supported_locales: tuple[str, ...] = ("en", "th", "ja")
    default_locale: str = "en"
    api_prefix: str = "/api"
    auth_prefix: str = "/api/auth"
    excluded_prefixes: tuple[str, ...] = ("/_next", "/static", "/favicon.ico")
    limit: int = 5
    window_ms: int = 60_000
    rate_limit_enabled: bool = True
    locale_aliases: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"tasks": "app/tasks"}),
        hash=False,
    )

    def __post_init__(self) -> None:
        if not self.supported_locales:
            raise ConfigurationAppError(
                code="no_supported_locales",
                message="At least one supported locale must be configured",
                details={"field": "supported_locales"},
            )
        for locale in self.supported_locales:
            if not locale or "/" in locale:
                raise ConfigurationAppError(
                    code="invalid_locale",
                    message=f"Locale code {locale!r} is not a valid path segment",
                    details={"field": "supported_locales", "actual_value": locale},
                )
        if self.default_locale not in self.supported_locales:
            raise ConfigurationAppError(
                code="default_locale_not_supported",
                message="Default locale must be one of the supported locales",
                details={"field": "default_locale", "actual_value": self.default_locale},
            )
        if self.limit < 1:
            raise ConfigurationAppError(
                code="invalid_rate_limit",
                message="Rate limit must be >= 1",
                details={"field": "limit", "actual_value": str(self.limit)},
            )
        if self.window_ms < 1:
            raise ConfigurationAppError(
                code="invalid_rate_limit_window",
                message="Rate limit window must be >= 1 ms",
                details={"field": "window_ms", "actual_value": str(self.window_ms)},
            )

        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "supported_locales", tuple(self.supported_locales))
        object.__setattr__(self, "api_prefix", _normalize_prefix(self.api_prefix))
        object.__setattr__(self, "auth_prefix", _normalize_prefix(self.auth_prefix))
        object.__setattr__(
            self,
            "excluded_prefixes",
            tuple(_normalize_prefix(p) for p in self.excluded_prefixes),
        )
        object.__setattr__(
            self, "locale_aliases", MappingProxyType(dict(self.locale_aliases))
        )

    @classmethod
    def from_settings(cls, app_settings: AppSettings) -> "EdgePolicy":
        """Build a policy from environment-driven application settings."""
        return cls(
            supported_locales=tuple(parse_csv(app_settings.supported_locales)),
            default_locale=app_settings.default_locale.strip(),
            api_prefix=app_settings.api_prefix,
            auth_prefix=app_settings.auth_prefix,
            excluded_prefixes=tuple(parse_csv(app_settings.excluded_path_prefixes)),
            limit=app_settings.rate_limit_requests,
            window_ms=app_settings.rate_limit_window_ms,
            rate_limit_enabled=app_settings.rate_limit_enabled,
            locale_aliases=parse_aliases(app_settings.locale_path_aliases),
        )

    def is_supported(self, locale: str | None) -> bool:
        return locale is not None and locale in self.supported_locales

    def is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.excluded_prefixes)

    def is_api_path(self, path: str) -> bool:
        return _has_prefix(path, self.api_prefix)

    def is_auth_path(self, path: str) -> bool:
        return _has_prefix(path, self.auth_prefix)

    def is_rate_limited(self, path: str) -> bool:
        """Whether requests to ``path`` count against the client's quota."""
        return (
            self.rate_limit_enabled
            and not self.is_excluded(path)
            and self.is_api_path(path)
            and not self.is_auth_path(path)
        )
