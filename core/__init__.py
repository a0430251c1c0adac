"""Core domain types: exceptions, DTOs, catalog, records, periods."""
