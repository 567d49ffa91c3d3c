"""HTTP API of the adapter."""
