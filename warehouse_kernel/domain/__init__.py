"""Pure domain values: clock, identifiers, DTOs, workflow tables, input checks."""
