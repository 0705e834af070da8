"""Command line interface for suiteplan."""
