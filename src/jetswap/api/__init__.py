"""HTTP API (market data, session status, health)."""
