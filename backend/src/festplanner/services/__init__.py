"""Schedule, sharing and remote-sync services."""
