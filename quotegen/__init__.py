"""
QuoteGen - quote expiration and reminder processing.
"""

__version__ = "0.1.0"
