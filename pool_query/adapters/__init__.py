"""Driver adapters implementing the AsyncAdapter protocol."""
