"""Domain logic sitting between page handlers and the remote store."""
