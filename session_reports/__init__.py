from __future__ import annotations  # Transcript export helpers

from .pdf import generate_transcript_pdf

__all__ = ["generate_transcript_pdf"]
