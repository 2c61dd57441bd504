"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(request: Request, response: Response) -> None

Finishing the response inside a middleware stops the chain.

Built-in middleware:
    CORSMiddleware -- Cross-Origin Resource Sharing
    SecurityHeadersMiddleware -- X-Frame-Options, X-Content-Type-Options, Referrer-Policy
"""

from cyro.middleware.builtin import CORSConfig, CORSMiddleware
from cyro.middleware.chain import ChainOutcome, MiddlewareChain
from cyro.middleware.protocol import Middleware
from cyro.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)

__all__ = [
    "CORSConfig",
    "CORSMiddleware",
    "ChainOutcome",
    "Middleware",
    "MiddlewareChain",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
]
