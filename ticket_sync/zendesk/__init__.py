"""
Ticketing service interaction module.
"""

from .client import ZendeskClient, ZendeskConfig

__all__ = [
    "ZendeskClient",
    "ZendeskConfig",
]
