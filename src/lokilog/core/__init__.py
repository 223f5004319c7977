"""Core domain: field model, rendering, formatting and envelope encoding."""
