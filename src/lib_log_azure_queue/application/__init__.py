"""Application layer: ports and the sink use cases."""
