"""Per-connection session state machine and the accept loop that drives it."""
