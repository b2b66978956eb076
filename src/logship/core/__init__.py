"""Core shipping pipeline: formatting, batching, stream identity, shipping."""
