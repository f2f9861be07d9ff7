"""Runtime host and service wiring."""
