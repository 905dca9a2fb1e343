"""Path model, configuration and error types."""
