from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

# Body markers of a Cloudflare interstitial. Kept narrow: article prose may
# well mention captchas or JavaScript.
CHALLENGE_BODY_MARKERS = (
    "Just a moment...",
    "cdn-cgi/challenge-platform",
    "cdn-cgi/challenge",
    "Checking your browser before accessing",
    "_cf_chl_opt",
    "challenge-platform",
    "Cloudflare Ray ID",
    "DDoS protection by Cloudflare",
)

PROTECTED_STATUS_CODES = {403, 503}


@dataclass(frozen=True)
class BotProtection:
    protected: bool
    challenge: str | None = None


NOT_PROTECTED = BotProtection(False)


def detect_bot_protection(
    status_code: int | None,
    headers: Mapping[str, str] | None,
    body: str | None,
) -> BotProtection:
    """Classify a raw HTTP response as a bot challenge or a normal page."""
    lowered = {key.lower(): value for key, value in (headers or {}).items()}
    if "cf-mitigated" in lowered:
        return BotProtection(True, f"cf-mitigated: {lowered['cf-mitigated']}")

    server = lowered.get("server", "").lower()
    if status_code in PROTECTED_STATUS_CODES and "cloudflare" in server:
        return BotProtection(True, f"cloudflare {status_code}")

    if body:
        for marker in CHALLENGE_BODY_MARKERS:
            if marker in body:
                return BotProtection(True, marker)
    return NOT_PROTECTED
