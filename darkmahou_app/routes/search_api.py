"""Search API Blueprint.

Exposes the DarkMahou provider to the host: torrent search, smart search,
page resolution and name parsing, plus provider settings and metrics.
"""
from __future__ import annotations

from typing import Optional

from flask import Blueprint, jsonify, request

from darkmahou_app.log import log
from darkmahou_app.torrents import parse
from sources import Media, get_provider
from .validators import (
    MAX_HTML_LENGTH, MAX_QUERY_LENGTH, parse_bool, sanitize_string,
    validate_episode, validate_fields, validate_resolution,
)


search_bp = Blueprint('search_api', __name__, url_prefix='/api')


def _error(message: str, detail: Optional[str] = None, code: str = 'invalid_request', status: int = 400):
    payload = {'error': message, 'code': code}
    if detail:
        payload['detail'] = detail
    return jsonify(payload), status


def _query_param(name: str = 'q') -> str:
    return sanitize_string(request.args.get(name, ''), max_length=MAX_QUERY_LENGTH).strip()


@search_bp.route('/search')
def search():
    """Search torrents for a title."""
    query = _query_param()
    if not query:
        return _error('Missing query', code='missing_query')

    results = get_provider().search(query)
    return jsonify({
        'query': query,
        'count': len(results),
        'results': [torrent.to_dict() for torrent in results],
    })


@search_bp.route('/search/smart')
def smart_search():
    """Search torrents narrowed by episode, resolution and batch."""
    query = _query_param()
    media = Media(
        romaji_title=_query_param('romaji') or None,
        english_title=_query_param('english') or None,
    )
    if not query and not (media.romaji_title or media.english_title):
        return _error('Missing query', code='missing_query')

    episode, error = validate_episode(request.args.get('episode'))
    if error:
        return _error(error, code='invalid_episode')

    resolution, error = validate_resolution(request.args.get('resolution'))
    if error:
        return _error(error, code='invalid_resolution')

    batch = parse_bool(request.args.get('batch'))

    results = get_provider().smart_search(
        query=query,
        episode_number=episode,
        resolution=resolution,
        batch=batch,
        media=media,
    )
    return jsonify({
        'query': query,
        'episode': episode,
        'resolution': resolution,
        'batch': batch,
        'count': len(results),
        'results': [torrent.to_dict() for torrent in results],
    })


@search_bp.route('/resolve', methods=['POST'])
def resolve():
    """Pick the best anime page from a search results HTML body."""
    payload = request.get_json(silent=True) or {}
    error = validate_fields(payload, [
        ('html', str, MAX_HTML_LENGTH),
        ('query', str, MAX_QUERY_LENGTH),
    ])
    if error:
        return _error(error)

    query = sanitize_string(payload['query'], max_length=MAX_QUERY_LENGTH).strip()
    url = get_provider().resolver.resolve_page_url(payload['html'], query)
    log(f"🔗 Resolved '{query}' -> {url or 'no match'}")
    return jsonify({'query': query, 'url': url})


@search_bp.route('/parse', methods=['POST'])
def parse_name():
    """Parse a torrent name (and optional magnet link) into metadata."""
    payload = request.get_json(silent=True) or {}
    error = validate_fields(payload, [('name', str, 1000)])
    if error:
        return _error(error)

    episode_title = payload.get('episode_title') or ''
    magnet_link = payload.get('magnet_link') or ''
    if not isinstance(episode_title, str) or not isinstance(magnet_link, str):
        return _error("Fields 'episode_title' and 'magnet_link' must be str")

    metadata = parse(payload['name'], episode_title, magnet_link)
    return jsonify(metadata.to_dict())


@search_bp.route('/settings')
def settings():
    return jsonify(get_provider().get_settings())


@search_bp.route('/metrics')
def metrics():
    return jsonify(get_provider().get_performance_metrics().to_dict())


@search_bp.route('/health')
def health():
    return jsonify(get_provider().get_health_info())
