"""Domain layer: trip models, ports and exceptions."""
