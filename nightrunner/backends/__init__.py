"""Session backends, loaded through entry points."""
