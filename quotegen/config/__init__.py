"""QuoteGen configuration."""
