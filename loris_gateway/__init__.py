"""
Loris Kenya Gateway - backend integration layer for payments and media.

Relays M-PESA STK push payments and stores product images on Backblaze B2,
hiding both remote APIs behind small adapters with cached sessions.
"""

__version__ = "0.1.0"
