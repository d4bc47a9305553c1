"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the local-guide prompt from a validated location query.
- Call the Groq chat completion endpoint once, with no retries.
"""
