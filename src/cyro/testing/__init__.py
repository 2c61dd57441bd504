"""Test utilities for cyro applications.

Usage::

    from cyro.testing import TestClient
"""

from cyro.testing.client import TestClient

__all__ = ["TestClient"]
