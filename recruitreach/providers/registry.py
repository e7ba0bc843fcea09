"""
Builds the active provider list from configuration.

A provider is active when its API key is set. Order follows
PROVIDER_PRIORITY. The built list is cached and only rebuilt when the
credentials, priority or timeout change.
"""

import logging
import threading
from typing import Optional

from recruitreach.config import PIPELINE_CONFIG
from recruitreach.providers.apollo import ApolloProvider
from recruitreach.providers.hunter import HunterProvider
from recruitreach.providers.rocketreach import RocketReachProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES = {
    'hunter': HunterProvider,
    'rocketreach': RocketReachProvider,
    'apollo': ApolloProvider,
}

_lock = threading.Lock()
_cache_key: Optional[tuple] = None
_cached: list = []


def _registry_key(config: dict) -> tuple:
    return (
        tuple(config.get('PROVIDER_PRIORITY') or PROVIDER_CLASSES.keys()),
        tuple(config.get(f'{key.upper()}_API_KEY', '') for key in PROVIDER_CLASSES),
        config.get('REQUEST_TIMEOUT'),
    )


def build_providers(config: Optional[dict] = None) -> list:
    """Construct the configured providers in priority order."""
    config = config if config is not None else PIPELINE_CONFIG
    priority = config.get('PROVIDER_PRIORITY') or list(PROVIDER_CLASSES)

    providers = []
    seen = set()
    for key in priority:
        if key in seen:
            continue
        seen.add(key)

        provider_cls = PROVIDER_CLASSES.get(key)
        if provider_cls is None:
            logger.warning("Unknown provider %r in PROVIDER_PRIORITY - ignoring", key)
            continue

        api_key = config.get(f'{key.upper()}_API_KEY')
        if not api_key:
            logger.debug("Provider %s has no API key - skipping", key)
            continue

        providers.append(provider_cls(api_key, timeout=config.get('REQUEST_TIMEOUT')))

    return providers


def get_registry(config: Optional[dict] = None) -> list:
    """Return the cached provider list, rebuilding it if the configuration changed."""
    global _cache_key, _cached
    config = config if config is not None else PIPELINE_CONFIG
    key = _registry_key(config)

    with _lock:
        if key != _cache_key:
            _cached = build_providers(config)
            _cache_key = key
            logger.info(
                "Active email providers: %s",
                ', '.join(p.name for p in _cached) or 'none',
            )
        return list(_cached)


def refresh_registry() -> None:
    """Forget the cached providers so the next call rebuilds them."""
    global _cache_key, _cached
    with _lock:
        _cache_key = None
        _cached = []
