"""Pure domain types and helpers (no I/O)."""
