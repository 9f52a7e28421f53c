"""
zapbroker: client library for a cryptocurrency broker service.

Signed REST access to accounts, markets and broker orders, plus
reconciliation of websocket-pushed order state into held views.
"""

__version__ = "0.3.0"
