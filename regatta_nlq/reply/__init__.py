"""Human-readable replies built from query results."""
