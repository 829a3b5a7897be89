"""HTTP API for the resolver."""
