"""
Bot-challenge guard.

Sites behind anti-bot services answer with an interstitial page ("Just a
moment...") or redirect to a different domain when the theme moved. Both
return HTTP 200, so the body has to be checked before it is parsed:
otherwise the engine happily extracts an empty record from the challenge
page.

Pure decisions only; fetching happens in the transport.
"""

import re
from typing import Optional

from pydantic import BaseModel

from .exceptions import AccessBlocked, SiteUnreachable
from .schemas import FetchResult
from .logger import get_module_logger

logger = get_module_logger("guard")

REASON_REDIRECTED = "redirected"
REASON_CHALLENGE = "challenge-page"

# Titles served by challenge/redirect interstitials, in the languages seen so far
CHALLENGE_TITLES = frozenset({
    "Bot Verification",
    "You are being redirected...",
    "Un instant...",
    "Just a moment...",
    "Redirecting...",
})

_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class GuardDecision(BaseModel):
    """Outcome of a guard check: passed, or blocked with a reason."""
    passed: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "GuardDecision":
        return cls(passed=True)

    @classmethod
    def blocked(cls, reason: str) -> "GuardDecision":
        return cls(passed=False, reason=reason)


def host_labels(url: str) -> list[str]:
    """
    Host of `url` split on dots with the TLD dropped.

    "https://www.example.com/x" → ["www", "example"]. Ports stay attached to
    the last label, so they are dropped together with it.
    """
    without_scheme = url.split("://", 1)[-1]
    host = without_scheme.split("/", 1)[0]
    labels = host.split(".")
    return labels[:-1]


def page_title(body: str) -> Optional[str]:
    """Trimmed text of the first <title> element, if any."""
    match = _TITLE_RE.search(body or "")
    if not match:
        return None
    return match.group(1).strip()


def inspect(requested_url: str, final_url: str, title: Optional[str]) -> GuardDecision:
    """Decide whether a fetched page is the page that was asked for."""
    if host_labels(requested_url) != host_labels(final_url):
        return GuardDecision.blocked(REASON_REDIRECTED)

    if title is not None and title.strip() in CHALLENGE_TITLES:
        return GuardDecision.blocked(REASON_CHALLENGE)

    return GuardDecision.ok()


def ensure_access(requested_url: str, result: FetchResult, search: bool = False) -> str:
    """
    Check a fetch result and return its body.

    Raises:
        SiteUnreachable: non-2xx status on a non-search request
        AccessBlocked: redirected to another host or served a challenge page

    A search request with a non-2xx status is still checked, then returned
    as-is: the listing parser turns it into an empty result.
    """
    if not result.ok and not search:
        raise SiteUnreachable(requested_url, result.status)

    decision = inspect(requested_url, result.final_url, page_title(result.body))
    if not decision.passed:
        logger.warning(f"Blocked {requested_url} -> {result.final_url}: {decision.reason}")
        raise AccessBlocked(
            decision.reason,
            url=requested_url,
            details={"final_url": result.final_url, "status": result.status},
        )

    return result.body
