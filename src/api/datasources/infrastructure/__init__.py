"""Infrastructure layer for the data-source routing bounded context."""
