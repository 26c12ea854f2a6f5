"""
llmcourse - Progress tracking for a three-module course on Large Language Models.

Subpackages:
- schemas: Pydantic models for the progress document and static metadata
- classroom: validation, persistence, completion, achievements, sessions, queries
- utils: YAML metadata loading
"""

__version__ = "0.1.0"
