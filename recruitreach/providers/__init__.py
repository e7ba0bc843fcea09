"""
Contact and email discovery providers.

Each adapter wraps one third-party API behind the EmailProvider
contract. The registry builds the active set from configured keys.
"""

from recruitreach.providers.base import (
    EmailProvider,
    LookupResult,
    BulkLookupResult,
    RawContact,
    CompanyMatch,
    FOUND,
    NOT_FOUND,
    LIMIT_REACHED,
    ERROR,
    EMAIL_LOCKED,
)
from recruitreach.providers.hunter import HunterProvider
from recruitreach.providers.rocketreach import RocketReachProvider
from recruitreach.providers.apollo import ApolloProvider
from recruitreach.providers.registry import build_providers, get_registry, refresh_registry

__all__ = [
    'EmailProvider',
    'LookupResult',
    'BulkLookupResult',
    'RawContact',
    'CompanyMatch',
    'FOUND',
    'NOT_FOUND',
    'LIMIT_REACHED',
    'ERROR',
    'EMAIL_LOCKED',
    'HunterProvider',
    'RocketReachProvider',
    'ApolloProvider',
    'build_providers',
    'get_registry',
    'refresh_registry',
]
