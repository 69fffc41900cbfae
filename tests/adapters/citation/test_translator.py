from __future__ import annotations

from dmphub.adapters.citation import render_citation
from dmphub.adapters.citation.schema import CslItem

DOI_URL = "https://doi.org/10.5555/paper.1"


def test_render_citation() -> None:
    item = CslItem.model_validate(
        {
            "type": "article-journal",
            "title": "Monitoring coastal erosion with drones.",
            "author": [
                {"family": "Doe", "given": "Jane Marie"},
                {"family": "Roe", "given": "Richard"},
                {"literal": "Coastal Lab"},
            ],
            "issued": {"date-parts": [[2024, 3]]},
            "container-title": ["Journal of Coastal Research"],
            "publisher": "Example Press",
        }
    )

    citation = render_citation(item, doi_url=DOI_URL, work_type="article")

    assert citation == (
        "Doe, J. M., Roe, R., & Coastal Lab (2024). Monitoring coastal erosion with drones. "
        "[Article]. Journal of Coastal Research. Example Press. "
        f'<a href="{DOI_URL}" target="_blank">{DOI_URL}</a>'
    )


def test_render_citation_without_authors_or_date() -> None:
    item = CslItem.model_validate({"title": "Drone imagery", "publisher": "Zenodo"})

    assert render_citation(item, doi_url=DOI_URL) == (
        f'Drone imagery. Zenodo. <a href="{DOI_URL}" target="_blank">{DOI_URL}</a>'
    )


def test_render_citation_needs_a_title() -> None:
    assert render_citation(CslItem.model_validate({"publisher": "Zenodo"}), doi_url=DOI_URL) is None
