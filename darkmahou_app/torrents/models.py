"""Torrent metadata models."""

import re
from dataclasses import dataclass, asdict
from typing import Any, Dict


RESOLUTIONS = ("480p", "720p", "1080p", "1440p", "4K")

UNKNOWN_EPISODE = -1

_HEX40 = re.compile(r'^[0-9a-fA-F]{40}$')


class InfoHash(str):
    """
    40-character hex BitTorrent info hash, always lower-case.

    Raises:
        ValueError: value is not exactly 40 hex digits
    """

    def __new__(cls, value: str):
        if not isinstance(value, str) or not _HEX40.match(value):
            raise ValueError(f"Invalid info hash: {value!r}")
        return super().__new__(cls, value.lower())


def is_valid_info_hash(value: str) -> bool:
    return isinstance(value, str) and bool(_HEX40.match(value))


@dataclass(frozen=True)
class TorrentMetadata:
    """Structured fields parsed from a torrent name and magnet link."""
    name: str
    info_hash: str = ""                 # 40 lower-case hex digits or ""
    resolution: str = ""                # one of RESOLUTIONS or ""
    is_batch: bool = False
    episode_number: int = UNKNOWN_EPISODE
    release_group: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
