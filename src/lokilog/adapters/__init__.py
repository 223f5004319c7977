"""Adapters connecting the core to sinks, transports and frameworks."""
