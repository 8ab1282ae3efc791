"""CNTSCI blood-product distribution reporting server."""
