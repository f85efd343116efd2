"""Route modules mounted by polytimes.api.router."""
