"""
Infrastructure layer - the ticketing API and local session storage.
Keeps derivation and reconciliation logic free of transport details.
"""

from .api_client import TicketingApiClient
from .token_store import TokenStore

__all__ = ['TicketingApiClient', 'TokenStore']
