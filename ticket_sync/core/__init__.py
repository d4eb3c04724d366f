"""
Shared helpers for Ticket Sync.
"""
