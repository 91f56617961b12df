"""
Torrent metadata extraction.

Components:
  - parser.py - info hash, resolution, batch, episode and release group parsing
  - models.py - TorrentMetadata and InfoHash
"""

from .models import RESOLUTIONS, UNKNOWN_EPISODE, InfoHash, TorrentMetadata
from .parser import (
    BATCH_RULES, EPISODE_STRATEGIES, MagnetCandidate, extract_episode_number,
    extract_info_hash, extract_magnet_links, extract_release_group,
    is_batch_torrent, parse, parse_resolution, torrent_name_from_magnet,
)

__all__ = [
    'RESOLUTIONS', 'UNKNOWN_EPISODE', 'InfoHash', 'TorrentMetadata',
    'BATCH_RULES', 'EPISODE_STRATEGIES', 'MagnetCandidate',
    'extract_episode_number', 'extract_info_hash', 'extract_magnet_links',
    'extract_release_group', 'is_batch_torrent', 'parse', 'parse_resolution',
    'torrent_name_from_magnet',
]
