"""
Preprocessor module for string-level page cleanup.

Runs on the raw response body before the guard and the tokenizer see it:
- Decodes raw bytes with the charset the page declares (browser mapping)
- Sanitizes the string (fixes malformations that break event parsers)
- Pulls the <title> text the bot-challenge guard looks at

Design principle: NEVER FAIL on bad HTML. Always produce usable output.

Pipeline position: Stage 1 (Preprocessor → guard → tokenizer → engine).
Input:  raw page body (bytes or str)
Output: PreprocessedPage with sanitized body, charset, title, warnings
"""

import re
from typing import Optional, Union

from pydantic import BaseModel, Field

from .guard import page_title
from .logger import get_module_logger

logger = get_module_logger("preprocessor")


class PreprocessedPage(BaseModel):
    """Sanitized body plus what was learned while cleaning it."""
    body: str
    charset: str = "utf-8"
    title: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)


class Preprocessor:
    """
    Rule-based page preprocessor.

    Only string-level fixes: structure is left to the tokenizer, which
    tolerates unbalanced tags by itself.
    """

    # Legacy labels that browsers decode with a Windows code page instead
    # (https://encoding.spec.whatwg.org/#names-and-labels)
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-6': 'windows-1256',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    # <meta charset=x> and <meta http-equiv=... content="...; charset=x">
    META_CHARSET_RE = re.compile(rb'<meta\b[^>]*?charset\s*=\s*["\']?\s*([\w.:-]+)', re.IGNORECASE)
    HEAD_BYTES = 2048

    # (pattern, replacement, warning) in application order
    FIXES = [
        (re.compile('\x00'), '', "Removed NULL bytes"),
        (re.compile(r'<{2,}(/?[a-zA-Z][^>]*?)>{2,}'), r'<\1>', "Fixed double angle brackets"),
        (re.compile(r'(\w+)==(["\'])'), r'\1=\2', "Fixed malformed attributes (double equals)"),
        (re.compile(r'\r\n?'), '\n', None),
        (re.compile('[\x01-\x08\x0b\x0c\x0e-\x1f]'), '', "Removed control characters"),
    ]

    @classmethod
    def detect_charset_from_bytes(cls, raw_bytes: bytes) -> str:
        """Charset a browser would use for the page; utf-8 when none is declared."""
        match = cls.META_CHARSET_RE.search(raw_bytes[:cls.HEAD_BYTES])
        if not match:
            return 'utf-8'
        label = match.group(1).decode('ascii', errors='ignore').lower()
        return cls.WHATWG_CHARSET_MAP.get(label, label) or 'utf-8'

    @classmethod
    def decode(cls, raw_bytes: bytes) -> tuple[str, str]:
        """Decode bytes with their declared charset. Returns (text, charset)."""
        charset = cls.detect_charset_from_bytes(raw_bytes)
        try:
            return raw_bytes.decode(charset, errors='replace'), charset
        except LookupError:
            logger.warning(f"Unknown charset '{charset}', decoding as utf-8")
            return raw_bytes.decode('utf-8', errors='replace'), 'utf-8'

    def sanitize(self, html: str) -> tuple[str, list[str]]:
        """
        Apply FIXES to a page string.

        Returns the cleaned string and one warning per fix that changed it.
        """
        # Lone surrogates would make lxml reject the whole string
        sanitized = html.encode('utf-8', errors='replace').decode('utf-8')
        warnings = []
        for pattern, replacement, warning in self.FIXES:
            sanitized, count = pattern.subn(replacement, sanitized)
            if count and warning:
                warnings.append(warning)

        logger.debug(f"Sanitization complete. {len(warnings)} fixes applied.")
        return sanitized, warnings

    def process(self, body: Union[str, bytes]) -> PreprocessedPage:
        """
        Clean a page body.

        Args:
            body: Raw page, already decoded or as bytes

        Returns:
            PreprocessedPage
        """
        charset = "utf-8"
        if isinstance(body, bytes):
            body, charset = self.decode(body)

        sanitized, warnings = self.sanitize(body)
        for warning in warnings:
            logger.warning(f"Sanitized input: {warning}")

        return PreprocessedPage(
            body=sanitized,
            charset=charset,
            title=page_title(sanitized),
            warnings=warnings,
        )


def preprocess(body: Union[str, bytes]) -> PreprocessedPage:
    """Convenience function to preprocess a page body."""
    return Preprocessor().process(body)
