"""HTTP API for the travel pricing engine."""
