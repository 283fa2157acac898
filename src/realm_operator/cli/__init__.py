"""Command line interface of the realm operator."""
