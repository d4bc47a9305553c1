"""
Place recommendation pipeline.

Responsibilities:
- Validate the raw location query body.
- Ask the LLM for nearby places matching the query.
- Coerce the model output into a fixed recommendation schema.
"""
