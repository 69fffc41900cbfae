"""DOI citation adapter."""

from __future__ import annotations

from .client import DoiCitationClient, doi_path
from .translator import render_citation

__all__ = ["DoiCitationClient", "doi_path", "render_citation"]
