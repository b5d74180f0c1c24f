"""Command line interface for build-publish."""
