"""User interfaces — the click command line."""
