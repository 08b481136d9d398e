"""Domain models, derived summaries and the error taxonomy."""
