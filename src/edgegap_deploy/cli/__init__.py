"""Command-line interface for edgegap-deploy."""
