"""RDA DMP Common Standard JSON adapter."""

from __future__ import annotations

from .translator import parse_candidate_works, parse_dmp_document, record_to_document

__all__ = ["parse_candidate_works", "parse_dmp_document", "record_to_document"]
