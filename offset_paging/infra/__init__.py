"""Infrastructure: database, logging and metrics."""
