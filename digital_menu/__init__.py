"""
                    Digital Menu Platform

Multi-tenant backend for restaurant and cafe owners to build digital
menus, publish them behind a public slug and share them via QR codes.
Uses the same hybrid Mock/Real service architecture for the cache,
real-time broadcaster and image host.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
