"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from the visitor description and the candidate pool.
- Call Groq to rank booths and write a rationale for each.
- Ask follow-up questions that sharpen a visitor's profile.
"""
