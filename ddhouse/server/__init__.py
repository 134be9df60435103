"""Agent-facing intake server: HTTP surface, ingest service and CLI."""
