"""Application layer – flag evaluation, state management and storage ports."""
