"""
================================================================================
DarkMahou v1.0 - Torrent Name Parser
================================================================================
Pulls release metadata out of fansub torrent names.

Names on the site follow the usual fansub conventions, loosely:

    [SubsPlease] Sousou no Frieren - 07 (1080p) [ABCD1234].mkv
    [Erai-raws] Oshi no Ko S02E03 [720p]
    [DKB] Kusuriya no Hitorigoto 01-24 (Batch) [1080p]

Every function here is total: malformed input gives the neutral value
("" / -1 / False) instead of an exception.

Batch detection and episode extraction are ordered rule lists. The first
rule that reaches a decision wins, so precedence is the list order.
================================================================================
"""

import re
from html import unescape
from typing import Callable, List, NamedTuple, Optional
from urllib.parse import unquote_plus

from bs4 import BeautifulSoup

from darkmahou_app.config import (
    COMMON_RESOLUTIONS, MAX_BATCH_EPISODES, MAX_EPISODE_NUMBER, MAX_YEAR,
    MIN_EPISODE_NUMBER,
)
from .models import RESOLUTIONS, UNKNOWN_EPISODE, InfoHash, TorrentMetadata


# =============================================================================
# PATTERNS
# =============================================================================

INFO_HASH = re.compile(r'btih:([a-fA-F0-9]{40})', re.IGNORECASE)
MAGNET_LINK = re.compile(r'magnet:\?[^"\'\s<>]+', re.IGNORECASE)
MAGNET_NAME = re.compile(r'[?&]dn=([^&]+)')
RESOLUTION = re.compile(r'\b(\d{3,4}p|4k)\b', re.IGNORECASE)
RELEASE_GROUP = re.compile(r'^\[([^\]]+)\]')
EPISODE_RANGE = re.compile(r'\b(\d{2,3})\s*[-~]\s*(\d{2,3})\b')
SEASON_ONLY = re.compile(r'\bs\d+\b', re.IGNORECASE)
SEASON_EPISODE = re.compile(r'S(\d+)E(\d+)', re.IGNORECASE)
SEASON_EPISODE_BOUNDED = re.compile(r'\bs\d+e\d+\b', re.IGNORECASE)
SINGLE_EPISODE = re.compile(r'\s-\s\d{1,3}(\s|$)')
EPISODE_DASH = re.compile(r'\s-\s(\d{1,4})\s')
EPISODE_PORTUGUESE = re.compile(r'epis[óo]dio\s+(\d+)', re.IGNORECASE)
EPISODE_ENGLISH = re.compile(r'(?:ep|episode)\s*(\d+)', re.IGNORECASE)
ISOLATED_NUMBER = re.compile(r'\b(\d{1,4})\b')

MIN_MAGNET_LENGTH = 20


def is_valid_magnet_link(link: str) -> bool:
    return isinstance(link, str) and link.startswith('magnet:?') and len(link) > MIN_MAGNET_LENGTH


def is_valid_episode_number(number: int) -> bool:
    return MIN_EPISODE_NUMBER <= number <= MAX_EPISODE_NUMBER


# =============================================================================
# SIMPLE FIELDS
# =============================================================================

def extract_info_hash(magnet_link: str) -> str:
    """
    Info hash from a magnet link, lower-cased.

    Returns:
        40-char hex string, or "" if the link is not a magnet or has no btih
    """
    if not is_valid_magnet_link(magnet_link):
        return ""
    match = INFO_HASH.search(magnet_link)
    if not match:
        return ""
    try:
        return InfoHash(match.group(1))
    except ValueError:
        return ""


def parse_resolution(name: str) -> str:
    """'1080p', '720p', ... or '4K'; '' for anything else."""
    match = RESOLUTION.search(name or "")
    if not match:
        return ""
    token = match.group(1).lower()
    resolution = "4K" if token == "4k" else token
    return resolution if resolution in RESOLUTIONS else ""


def extract_release_group(name: str) -> str:
    """'[SubsPlease] Show - 01' -> 'SubsPlease'."""
    match = RELEASE_GROUP.match(name or "")
    return match.group(1) if match else ""


# =============================================================================
# BATCH DETECTION
# =============================================================================

class BatchRule(NamedTuple):
    """Returns True/False to decide, None to defer to the next rule."""
    name: str
    decide: Callable[[str, str], Optional[bool]]


def _batch_keyword(name: str, episode_title: str) -> Optional[bool]:
    lower_name = name.lower()
    if "batch" in lower_name or "complete" in lower_name:
        return True
    return None


def _episode_title_range(name: str, episode_title: str) -> Optional[bool]:
    return True if "~" in episode_title else None


def _episode_range(name: str, episode_title: str) -> Optional[bool]:
    match = EPISODE_RANGE.search(name)
    if not match:
        return None
    start, end = int(match.group(1)), int(match.group(2))
    if end > start and start >= MIN_EPISODE_NUMBER and end <= MAX_BATCH_EPISODES:
        return True
    return None


def _season_without_episode(name: str, episode_title: str) -> Optional[bool]:
    if SEASON_ONLY.search(name) and not SEASON_EPISODE_BOUNDED.search(name):
        return True
    return None


def _single_episode(name: str, episode_title: str) -> Optional[bool]:
    return False if SINGLE_EPISODE.search(name) else None


BATCH_RULES: List[BatchRule] = [
    BatchRule("keyword", _batch_keyword),
    BatchRule("episode_title_range", _episode_title_range),
    BatchRule("episode_range", _episode_range),
    BatchRule("season_without_episode", _season_without_episode),
    BatchRule("single_episode", _single_episode),
]


def batch_decision(name: str, episode_title: str = "") -> Optional[str]:
    """Name of the rule that decided, or None if the default applied."""
    name, episode_title = name or "", episode_title or ""
    for rule in BATCH_RULES:
        if rule.decide(name, episode_title) is not None:
            return rule.name
    return None


def is_batch_torrent(name: str, episode_title: str = "") -> bool:
    """True for season packs, ranges and anything labelled batch/complete."""
    name, episode_title = name or "", episode_title or ""
    for rule in BATCH_RULES:
        decision = rule.decide(name, episode_title)
        if decision is not None:
            return decision
    return False


# =============================================================================
# EPISODE EXTRACTION
# =============================================================================

class EpisodeStrategy(NamedTuple):
    """Returns a candidate episode number or None."""
    name: str
    extract: Callable[[str, str], Optional[int]]


def _from_pattern(text: str, pattern: re.Pattern, group: int = 1) -> Optional[int]:
    match = pattern.search(text)
    if not match:
        return None
    number = int(match.group(group))
    return number if is_valid_episode_number(number) else None


def _is_plausible_isolated(number: int) -> bool:
    return (
        is_valid_episode_number(number)
        and number not in COMMON_RESOLUTIONS
        and number < MAX_YEAR
    )


def _from_isolated_numbers(name: str) -> Optional[int]:
    for token in ISOLATED_NUMBER.findall(name):
        number = int(token)
        if _is_plausible_isolated(number):
            return number
    return None


EPISODE_STRATEGIES: List[EpisodeStrategy] = [
    EpisodeStrategy("portuguese_title", lambda name, title: _from_pattern(title, EPISODE_PORTUGUESE)),
    EpisodeStrategy("dash", lambda name, title: _from_pattern(name, EPISODE_DASH)),
    EpisodeStrategy("season_episode", lambda name, title: _from_pattern(name, SEASON_EPISODE, group=2)),
    EpisodeStrategy("english", lambda name, title: _from_pattern(name, EPISODE_ENGLISH)),
    EpisodeStrategy("isolated_number", lambda name, title: _from_isolated_numbers(name)),
]


def extract_episode_number(name: str, episode_title: str = "") -> int:
    """
    Episode number of a single-episode release.

    Returns:
        Episode in [1, 9999], or -1 for batches and unknown names

    Examples:
        "[Group] Show - 07 (1080p)"     -> 7
        "[Group] Show S01E05 (1080p)"   -> 5
        "[Group] Show 01-12 (1080p)"    -> -1
    """
    name, episode_title = name or "", episode_title or ""
    if is_batch_torrent(name, episode_title):
        return UNKNOWN_EPISODE

    for strategy in EPISODE_STRATEGIES:
        number = strategy.extract(name, episode_title)
        if number is not None:
            return number

    return UNKNOWN_EPISODE


# =============================================================================
# COMBINED PARSING
# =============================================================================

def parse(name: str, episode_title: str = "", magnet_link: str = "") -> TorrentMetadata:
    """Parse every field; each one falls back to its neutral value on its own."""
    name = name or ""
    return TorrentMetadata(
        name=name,
        info_hash=extract_info_hash(magnet_link),
        resolution=parse_resolution(name),
        is_batch=is_batch_torrent(name, episode_title),
        episode_number=extract_episode_number(name, episode_title),
        release_group=extract_release_group(name),
    )


# =============================================================================
# PAGE HELPERS
# =============================================================================

class MagnetCandidate(NamedTuple):
    link: str
    episode_title: str = ""


def extract_magnet_links(html: str) -> List[MagnetCandidate]:
    """
    Magnet links on an anime page, de-duplicated by info hash.

    Anchor links carry their anchor text as episode title. Pages without
    magnet anchors fall back to a raw text scan.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, 'html.parser')
    found = [
        MagnetCandidate(a['href'].strip(), a.get_text(" ", strip=True))
        for a in soup.select('a[href^="magnet:"]')
    ]
    if not found:
        found = [MagnetCandidate(link) for link in MAGNET_LINK.findall(unescape(html))]

    results: List[MagnetCandidate] = []
    seen = set()
    for candidate in found:
        key = extract_info_hash(candidate.link) or candidate.link
        if key in seen:
            continue
        seen.add(key)
        results.append(candidate)
    return results


def torrent_name_from_magnet(magnet_link: str, fallback_number: int) -> str:
    """Display name from the dn= parameter, or 'Episode N'."""
    match = MAGNET_NAME.search(magnet_link or "")
    if match:
        return unquote_plus(match.group(1))
    return f"Episode {fallback_number}"

