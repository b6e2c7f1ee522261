"""Sensitive-data masking for text that leaves the process.

Questions are masked before classification and AI analysis, and the AI
answer is unmasked before it reaches the user. Tokens look like
``[EMAIL_1]`` and are numbered per call, so the same mapping must be used
to unmask.

Detected kinds, in masking order:
    email  addresses
    phone  10-digit numbers with optional country code and separators
    id     uppercase prefix + 6 or more digits (e.g. NIK1234567)
    name   capitalised words after a role title ("auditor Budi Santoso")
"""

import logging
import re

from audit_query.domain.entities import MaskingResult, MaskingToken

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?<![\w+])(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")
_ID_RE = re.compile(r"\b[A-Z]{2,}\d{6,}\b")
# Role titles match in any case; the name itself must be capitalised
_NAME_RE = re.compile(
    r"\b(?i:auditor|inspector|manager|director|engineer)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\b"
)


class DataMaskingService:
    """Replaces personal data with numbered placeholder tokens and restores it."""

    def mask(self, text: str) -> MaskingResult:
        tokens: list[MaskingToken] = []
        masked = text or ""
        masked = self._mask_whole(masked, _EMAIL_RE, "email", tokens)
        masked = self._mask_whole(masked, _PHONE_RE, "phone", tokens)
        masked = self._mask_whole(masked, _ID_RE, "id", tokens)
        masked = self._mask_names(masked, tokens)
        if tokens:
            logger.debug("Masked %d value(s): %s", len(tokens), [t.kind for t in tokens])
        return MaskingResult(masked_text=masked, tokens=tokens)

    def unmask(self, text: str, tokens: list[MaskingToken]) -> str:
        """Put the original values back; longest token first so [ID_1] never eats [ID_10]."""
        if not text or not tokens:
            return text
        for token in sorted(tokens, key=lambda t: len(t.token), reverse=True):
            text = text.replace(token.token, token.original_value)
        return text

    def contains_sensitive_data(self, text: str) -> bool:
        return any(rx.search(text or "") for rx in (_EMAIL_RE, _PHONE_RE, _ID_RE, _NAME_RE))

    @staticmethod
    def _new_token(kind: str, value: str, tokens: list[MaskingToken]) -> str:
        token = f"[{kind.upper()}_{len(tokens) + 1}]"
        tokens.append(MaskingToken(token=token, original_value=value, kind=kind))
        return token

    def _mask_whole(
        self, text: str, pattern: re.Pattern, kind: str, tokens: list[MaskingToken]
    ) -> str:
        return pattern.sub(lambda m: self._new_token(kind, m.group(0), tokens), text)

    def _mask_names(self, text: str, tokens: list[MaskingToken]) -> str:
        def replace(m: re.Match) -> str:
            start, end = m.span(1)
            token = self._new_token("name", m.group(1), tokens)
            return m.group(0)[: start - m.start()] + token + m.group(0)[end - m.start():]

        return _NAME_RE.sub(replace, text)
