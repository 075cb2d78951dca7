"""Product media agent: prompt engineering + Gemini image + Veo video."""

__version__ = "0.1.0"
