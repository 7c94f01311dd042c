"""HTTP API for triggering automation runs."""
