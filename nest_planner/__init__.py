"""
AI trip planning pipeline powered by Google Gemini.

This package turns trip parameters into structured itineraries, cover images,
video teasers, grounded answers and a conversational (text and voice)
assistant, degrading gracefully whenever a generative call fails.
"""

__version__ = "0.1.0"
