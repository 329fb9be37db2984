"""Activity Log Viewer backend: ingestion, indexing and analytics for agent activity logs."""
