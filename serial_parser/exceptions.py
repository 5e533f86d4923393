"""
Exceptions raised by the serial parser.

Error philosophy:
  - AccessBlocked     → FAIL HARD: the page is a bot challenge or a redirect to
                        another site. Never retried here; the caller decides.
  - SiteUnreachable   → FAIL HARD: transport returned a non-2xx status on a
                        non-search request.
  - MalformedInput    → FAIL HARD: the tokenizer could not produce any events.
  - StructureMismatch → CALLER LEVEL: extraction finished but found neither a
                        name nor chapters. The engine never raises it; the
                        orchestrator does in strict mode.

Everything inside the extraction state machine degrades to defaults (empty
string, Unknown status, ordinal 0) instead of raising.
"""

from typing import Optional


class SerialParserError(Exception):
    """Base exception for all serial parser errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- FAIL HARD: stops the extraction ---

class AccessBlocked(SerialParserError):
    """
    Raised by the bot-challenge guard.

    `reason` is "redirected" (the final host differs from the requested one)
    or "challenge-page" (the page title is a known interstitial).
    """

    def __init__(self, reason: str, url: str = "", details: Optional[dict] = None):
        super().__init__(
            f"Access blocked ({reason}) for {url or 'page'}: "
            "open the site in a browser or check whether it moved",
            details,
        )
        self.reason = reason
        self.url = url

    def to_response(self) -> dict:
        """Convert to the error entry used by the run scripts."""
        return {
            "error": "AccessBlocked",
            "reason": self.reason,
            "message": self.message,
            "details": self.details
        }


class SiteUnreachable(SerialParserError):
    """Raised when a non-search request comes back with a non-2xx status."""

    def __init__(self, url: str, status: int, details: Optional[dict] = None):
        super().__init__(f"Could not reach site ({status}): {url}", details)
        self.url = url
        self.status = status


class MalformedInput(SerialParserError):
    """Raised when the tokenizer cannot turn a body into events."""
    pass


# --- CALLER LEVEL: the engine finished, the result is unusable ---

class StructureMismatch(SerialParserError):
    """
    Raised by the orchestrator when a page yields no name and no chapters.

    Usually means the grammar does not describe this page (wrong site
    family, or the theme changed).
    """

    def __init__(self, message: str, path: str = "", details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path
