"""
Resume Tailor: multi-agent LLM pipeline that tailors resume content to a
job description.
"""

__version__ = "0.1.0"
