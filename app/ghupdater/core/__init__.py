"""Core update pipeline: configuration, locking, run context and orchestration."""
