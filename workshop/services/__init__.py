"""Service layer: connection + transaction boundaries around the repository."""
