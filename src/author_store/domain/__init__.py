"""Domain layer - records, schema and the indexed store."""
