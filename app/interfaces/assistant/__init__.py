"""HTTP interface for the assistant bounded context."""
