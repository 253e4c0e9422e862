"""Pure scoring logic. Nothing in this package performs I/O."""
