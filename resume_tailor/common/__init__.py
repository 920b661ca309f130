"""
Shared infrastructure for the tailoring pipeline: configuration, logging,
errors, structured output parsing, model adapters, and agents.
"""
