"""HTTP API for pipewright."""
