"""HTTP API for ytmproxy."""
