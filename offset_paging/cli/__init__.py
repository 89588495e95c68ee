"""Command line interface for inspecting paged queries."""
