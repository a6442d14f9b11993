"""Heuristic scoring of menu entries against a requested model label.

Pure functions over literal label/identifier data, so the ranking can be
exercised without a browser. The page side only collects ``MenuCandidate``
values and clicks whichever one ranks first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from draft_stager.config import ScoringWeights

MODIFIERS = ("pro", "instant", "thinking")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DOTTED_VERSION = re.compile(r"(?<![0-9])(\d+)[.\-](\d+)(?![0-9])")
_SPACED_VERSION = re.compile(r"(?<![0-9])(\d+) (\d+)(?![0-9])")
_COMPACT_VERSION = re.compile(r"gpt-?(\d)(\d)(?![0-9])")


@dataclass(frozen=True)
class MenuCandidate:
    """One menu entry as read from the page in a single pass."""

    index: int
    label: str
    testid: str = ""
    selected: bool = False

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> MenuCandidate:
        return cls(
            index=int(data.get("index", 0)),
            label=str(data.get("label") or ""),
            testid=str(data.get("testid") or ""),
            selected=bool(data.get("selected")),
        )

    @property
    def is_submenu(self) -> bool:
        return "submenu" in self.testid.lower()


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: MenuCandidate
    score: int
    normalized_text: str
    identifier_match: bool = False

    @property
    def label(self) -> str:
        return self.candidate.label

    @property
    def testid(self) -> str:
        return self.candidate.testid


@dataclass(frozen=True)
class SelectionMatcher:
    """Comparison tokens derived from a target label."""

    target: str
    normalized_target: str
    label_tokens: tuple[str, ...]
    testid_tokens: tuple[str, ...]
    target_words: tuple[str, ...]
    version: str | None
    wants_pro: bool
    wants_instant: bool
    wants_thinking: bool


def normalize_text(value: str | None) -> str:
    """Lowercase, collapse every non-alphanumeric run to one space."""
    if not value:
        return ""
    return _NON_ALNUM.sub(" ", value.lower()).strip()


def detect_version(value: str) -> str | None:
    """Return a ``major-minor`` qualifier such as ``5-2`` found in *value*."""
    lowered = value.lower()
    for pattern in (_DOTTED_VERSION, _COMPACT_VERSION, _SPACED_VERSION):
        match = pattern.search(lowered)
        if match:
            return f"{match.group(1)}-{match.group(2)}"
    return None


def _dedupe(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


def build_matcher(target_label: str) -> SelectionMatcher:
    base = (target_label or "").strip().lower()
    collapsed = re.sub(r"\s+", "", base)
    dotless = base.replace(".", "")
    hyphenated = re.sub(r"\s+", "-", base)
    normalized_target = normalize_text(base)
    words = tuple(normalized_target.split())
    version = detect_version(base)
    wants = {modifier: modifier in words for modifier in MODIFIERS}

    labels = [
        base,
        re.sub(r"\s+", " ", base),
        collapsed,
        dotless,
        f"chatgpt {base}",
        f"chatgpt {dotless}",
        f"gpt {base}",
        f"gpt {dotless}",
    ]
    testids: list[str] = []

    if version:
        major, minor = version.split("-")
        labels += [
            f"{major}.{minor}",
            f"gpt-{major}.{minor}",
            f"gpt{major}.{minor}",
            f"gpt-{major}-{minor}",
            f"gpt{major}-{minor}",
            f"gpt{major}{minor}",
            f"chatgpt {major}.{minor}",
        ]
        for modifier in ("thinking", "instant"):
            if wants[modifier]:
                labels.append(modifier)
                testids += [
                    f"model-switcher-gpt-{major}-{minor}-{modifier}",
                    f"gpt-{major}-{minor}-{modifier}",
                    f"gpt-{major}.{minor}-{modifier}",
                ]
        if not any(wants.values()):
            testids.append(f"model-switcher-gpt-{major}-{minor}")
        testids += [f"gpt-{major}-{minor}", f"gpt{major}-{minor}", f"gpt{major}{minor}"]

    if wants["pro"]:
        labels += ["proresearch", "research grade", "advanced reasoning"]
        if version:
            major, minor = version.split("-")
            testids += [
                f"gpt-{major}.{minor}-pro",
                f"gpt-{major}-{minor}-pro",
                f"gpt{major}{minor}pro",
            ]
        testids += ["pro", "proresearch"]

    labels += base.split()
    testids += [
        hyphenated,
        collapsed,
        dotless,
        f"model-switcher-{hyphenated}",
        f"model-switcher-{collapsed}",
        f"model-switcher-{dotless}",
    ]

    label_tokens = _dedupe([normalize_text(token) for token in [normalized_target, *labels]])
    return SelectionMatcher(
        target=target_label,
        normalized_target=normalized_target,
        label_tokens=label_tokens,
        testid_tokens=_dedupe(testids),
        target_words=words,
        version=version,
        wants_pro=wants["pro"],
        wants_instant=wants["instant"],
        wants_thinking=wants["thinking"],
    )


def _has_word(text: str, word: str) -> bool:
    return word in text.split()


def _score_identifier(testid: str, matcher: SelectionMatcher, weights: ScoringWeights) -> int:
    if testid in matcher.testid_tokens:
        score = weights.testid_exact
        if testid.startswith("model-switcher-"):
            score += weights.testid_exact_prefixed
        return score

    matches = [token for token in matcher.testid_tokens if token in testid]
    if not matches:
        return 0
    best = max(matches, key=len)
    score = weights.testid_partial_base + min(
        weights.testid_partial_cap, len(best) * weights.testid_partial_per_char
    )
    if best.startswith("model-switcher-"):
        score += weights.testid_partial_prefixed
    if "gpt-" in best:
        score += weights.testid_partial_gpt
    return score


def _modifier_adjustment(
    wanted: bool, present: bool, weights: ScoringWeights
) -> int:
    if wanted and not present:
        return -weights.modifier_missing_penalty
    if not wanted and present:
        return -weights.modifier_extra_penalty
    return 0


def score_candidate(
    candidate: MenuCandidate,
    matcher: SelectionMatcher,
    weights: ScoringWeights | None = None,
) -> ScoredCandidate:
    """Score one menu entry; zero means "never pick this"."""
    weights = weights or ScoringWeights()
    text = normalize_text(candidate.label)
    testid = candidate.testid.lower()

    def _scored(score: int, identifier_match: bool = False) -> ScoredCandidate:
        return ScoredCandidate(candidate, max(score, 0), text, identifier_match)

    if not text and not testid:
        return _scored(0)

    if matcher.version:
        candidate_version = detect_version(testid) if testid else None
        if candidate_version is None:
            candidate_version = detect_version(text)
        if candidate_version and candidate_version != matcher.version:
            return _scored(0)
        if "submenu" in testid and candidate_version is None:
            return _scored(0)

    score = _score_identifier(testid, matcher, weights) if testid else 0
    identifier_match = score > 0

    target = matcher.normalized_target
    if text and target:
        if text == target:
            score += weights.text_exact
        elif text.startswith(target):
            score += weights.text_prefix
        elif target in text:
            score += weights.text_substring

    for token in matcher.label_tokens:
        if token in text:
            score += min(weights.token_max, max(weights.token_min, len(token) * weights.token_per_char))

    if len(matcher.target_words) > 1:
        missing = sum(1 for word in matcher.target_words if word not in text)
        score -= missing * weights.missing_word_penalty

    score += _modifier_adjustment(matcher.wants_pro, _has_word(text, "pro"), weights)
    for modifier, wanted in (
        ("thinking", matcher.wants_thinking),
        ("instant", matcher.wants_instant),
    ):
        score += _modifier_adjustment(wanted, modifier in text or modifier in testid, weights)

    return _scored(score, identifier_match)


def rank_candidates(
    candidates: list[MenuCandidate],
    matcher: SelectionMatcher,
    weights: ScoringWeights | None = None,
) -> list[ScoredCandidate]:
    """Return candidates with a positive score, best first.

    Ties go to identifier matches, then to the earlier entry in the menu.
    """
    scored = [score_candidate(c, matcher, weights) for c in candidates]
    ranked = [s for s in scored if s.score > 0]
    ranked.sort(key=lambda s: (-s.score, not s.identifier_match, s.candidate.index))
    return ranked


def label_satisfies(label: str | None, matcher: SelectionMatcher) -> bool:
    """True when a control label carries exactly the target's version and modifiers."""
    text = normalize_text(label)
    if not text:
        return False
    if matcher.version and matcher.version.replace("-", " ") not in text:
        return False
    if matcher.wants_pro != _has_word(text, "pro"):
        return False
    if matcher.wants_instant != ("instant" in text):
        return False
    if matcher.wants_thinking != ("thinking" in text):
        return False
    return True


def find_level_option(candidates: list[MenuCandidate], level: str) -> MenuCandidate | None:
    """First entry whose normalized text contains the requested level."""
    wanted = normalize_text(level)
    if not wanted:
        return None
    for candidate in candidates:
        if wanted in normalize_text(candidate.label):
            return candidate
    return None
