"""
AI Subtitle Translator - chunked subtitle translation and subtitle generation.

A pipeline for:
- Parsing and serializing SRT-style subtitle blocks
- Chunking subtitles into backend-sized batches
- Translating chunks with OpenAI, Gemini, Anthropic or DeepSeek (OpenRouter)
- Extracting audio from videos and generating subtitles with Gemini
"""

__version__ = "0.1.0"
