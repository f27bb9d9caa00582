"""HTTP API and scheduled jobs for the KTV venue backend."""
