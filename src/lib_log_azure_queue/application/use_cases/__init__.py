"""Use cases composing the sink behaviour."""
