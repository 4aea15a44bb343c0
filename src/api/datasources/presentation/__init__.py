"""HTTP presentation layer for the datasources bounded context."""
