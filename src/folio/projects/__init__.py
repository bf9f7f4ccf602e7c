"""Project records, their sidecar documents, and editing sessions."""
