"""
Prompt templates for the task graphs.

One module per graph; each exposes *_SYSTEM_PROMPT constants for its agents
and build_* functions for the per-call context.
"""
