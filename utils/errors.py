"""
Typed Exception Classes for Memecoin Observatory

This module provides specific exception types so the dispatch layer can map
failures onto response codes and batch operations can skip bad tokens.
"""


# ============================================================================
# Input Exceptions
# ============================================================================

class InputError(Exception):
    """Required parameter missing or invalid"""
    pass


class TokenNotFoundError(InputError):
    """Token is neither stored nor resolvable on chain"""
    pass


class UnknownOperationError(InputError):
    """Dispatch name does not match a supported operation"""
    pass


# ============================================================================
# Network & API Exceptions
# ============================================================================

class NetworkError(Exception):
    """Base exception for network-related errors"""
    pass


class UpstreamUnavailable(NetworkError):
    """Chain, market or social provider could not supply data"""
    pass


class RPCError(UpstreamUnavailable):
    """Solana JSON-RPC endpoint failures"""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}")
        self.method = method


class APIRateLimitError(UpstreamUnavailable):
    """API rate limit exceeded"""
    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================

class ConfigurationError(Exception):
    """Configuration validation errors"""
    pass


# ============================================================================
# Database Exceptions
# ============================================================================

class DatabaseError(Exception):
    """Database operation errors"""
    pass
