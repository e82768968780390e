"""LLM provider clients.

This package keeps the Gemini SDK behind a small interface so the question
generator and the tutor build provider-neutral requests and can be exercised
with in-memory fakes instead of live API calls.
"""
