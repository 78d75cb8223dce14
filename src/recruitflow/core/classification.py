"""User agent classification for application-form sessions.

Both tables are scanned top to bottom and the first rule with a matching
marker wins. Chrome reports ``Chrome/... Safari/...``, so ``chrome`` must
stay ahead of ``safari``; Chromium-based Edge and Opera also carry ``chrome``
and resolve to it.
"""

from __future__ import annotations

from dataclasses import dataclass

from recruitflow.types import BrowserName, DeviceType


@dataclass(frozen=True, slots=True)
class UserAgentRule:
    label: str
    markers: tuple[str, ...]

    def matches(self, user_agent: str) -> bool:
        return any(marker in user_agent for marker in self.markers)


DEVICE_RULES: tuple[UserAgentRule, ...] = (
    UserAgentRule(label="mobile", markers=("mobile", "android", "iphone")),
    UserAgentRule(label="tablet", markers=("tablet", "ipad")),
)

BROWSER_RULES: tuple[UserAgentRule, ...] = (
    UserAgentRule(label="chrome", markers=("chrome",)),
    UserAgentRule(label="firefox", markers=("firefox",)),
    UserAgentRule(label="safari", markers=("safari",)),
    UserAgentRule(label="edge", markers=("edge",)),
    UserAgentRule(label="opera", markers=("opera",)),
)


def _first_match(rules: tuple[UserAgentRule, ...], user_agent: str) -> str | None:
    lowered = user_agent.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.label
    return None


def classify_device(user_agent: str | None) -> DeviceType:
    if not user_agent:
        return "unknown"
    return _first_match(DEVICE_RULES, user_agent) or "desktop"  # type: ignore[return-value]


def classify_browser(user_agent: str | None) -> BrowserName:
    if not user_agent:
        return "unknown"
    return _first_match(BROWSER_RULES, user_agent) or "other"  # type: ignore[return-value]
