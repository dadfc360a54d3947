"""Application layer: token endpoint orchestration."""
