"""Secret redaction and input checks.

Redaction fails closed: a pattern that does not compile, or a match that
blows up, raises ``RedactionError`` instead of letting the raw text through.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, NamedTuple

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


# 6-30 chars, starts with a letter, no trailing hyphen
PROJECT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_SENSITIVE_KEY_PARTS = ("token", "key", "secret", "password", "credential")


class _Rule(NamedTuple):
    name: str
    pattern: re.Pattern[str]


def _compile_rules(specs: Iterable[tuple[str, str]]) -> list[_Rule]:
    rules: list[_Rule] = []
    for source, name in specs:
        try:
            rules.append(_Rule(name, re.compile(source)))
        except re.error as e:
            log.error("pattern_compilation_failed", pattern=name, error=str(e))
            raise RedactionError(f"Failed to compile secret pattern {name!r}: {e}") from e
    return rules


class SecretRedactor:
    """Finds credentials in free text and replaces them with a placeholder.

    The default rules cover what this service can plausibly leak into a log
    line: Google Cloud and Firebase credentials, service account JSON,
    Firebase ID tokens (JWTs), database URLs and private key headers.

    Usage:
        redactor = SecretRedactor()
        safe = redactor.redact(error_text)
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        # Google Cloud / Firebase
        (r"AIza[0-9A-Za-z\-_]{35}", "Google API key"),
        (r"ya29\.[0-9A-Za-z\-_]+", "Google OAuth access token"),
        (r"1//[0-9A-Za-z\-_]{40,}", "Google OAuth refresh token"),
        (r"GOCSPX-[a-zA-Z0-9_-]+", "Google OAuth client secret"),
        (r'"type"\s*:\s*"service_account"', "Service account JSON"),
        (r'"private_key_id"\s*:\s*"[a-f0-9]{40}"', "Service account key id"),
        (
            r"(?i)(postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^:]+:[^@]+@[^\s]+",
            "Database URL",
        ),
        (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private key"),
        (r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*", "JWT"),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """
        Args:
            placeholder: Replacement text for every match
            custom_patterns: Extra ``(regex, name)`` pairs, checked after the defaults

        Raises:
            RedactionError: A pattern does not compile
        """
        self.placeholder = placeholder
        self._rules = _compile_rules((*self.DEFAULT_PATTERNS, *(custom_patterns or ())))

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        return [rule.pattern for rule in self._rules]

    def redact(self, text: str) -> str:
        if not text:
            return text
        try:
            for rule in self._rules:
                text = rule.pattern.sub(self.placeholder, text)
        except Exception as e:
            log.error("redaction_failed", error=type(e).__name__)
            raise RedactionError(f"Redaction failed: {e}") from e
        return text

    def has_secrets(self, text: str) -> bool:
        if not text:
            return False
        try:
            return any(rule.pattern.search(text) for rule in self._rules)
        except Exception as e:
            log.error("has_secrets_check_failed", error=type(e).__name__)
            raise RedactionError(f"Secret check failed: {e}") from e


def validate_project_id(project_id: str) -> bool:
    """True for a well-formed Google Cloud project id such as ``campus-market-prod``."""
    return bool(project_id) and PROJECT_ID_PATTERN.match(project_id) is not None


def is_university_email(email: str | None, domain: str) -> bool:
    """Check that ``email`` is an address at exactly ``domain``.

    Case is ignored. The local part must be non-empty and the host must equal
    the domain, so ``anna@evil-edu.rtu.lv`` does not pass for ``edu.rtu.lv``.
    """
    if not email:
        return False
    local, at, host = email.strip().lower().rpartition("@")
    return at == "@" and local != "" and host == domain.lower()


def sanitize_for_logging(text: str) -> str:
    """Strip ANSI colour codes and control characters, keeping ``\\n``, ``\\t`` and ``\\r``.

    Listing titles and display names are user input; left as-is they could
    forge or garble log lines.
    """
    if not text:
        return text
    return _CONTROL_CHARS.sub("", _ANSI_ESCAPE.sub("", text))


def mask_config_value(key: str, value: str) -> str:
    """Shorten a config value to ``head...tail`` when its key looks sensitive.

    Values of eight characters or fewer are replaced by ``***`` entirely.
    """
    if not any(part in key.lower() for part in _SENSITIVE_KEY_PARTS):
        return value
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"
