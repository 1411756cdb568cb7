"""Quiz engine: session selection, state machine and scoring."""
