"""Live status monitor for running Claude Code sessions."""
