"""QuoteGen services."""
