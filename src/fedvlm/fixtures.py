"""Canned federated responses for mock mode and local demos."""

from __future__ import annotations

from typing import Any

from fedvlm.query import QueryKey, gene_key, variant_key

DEMO_VARIANT_ID = "13-42298583-A-G"
DEMO_GENE_SYMBOL = "BRCA1"


def _variant_entry(
    node_id: str,
    variant_id: str,
    ac: int,
    *,
    consequence: str | None = None,
    associations: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    info: dict[str, Any] = {"ac": ac, "associations": associations or []}
    if consequence is not None:
        info["consequence"] = consequence
    return {
        "exists": True,
        "id": node_id,
        "results": [{"id": variant_id}],
        "resultsCount": 1,
        "type": "dataset",
        "info": info,
    }


def demo_variant_payload() -> dict[str, Any]:
    """Three nodes answering for ``13-42298583-A-G``."""
    return {
        "exists": True,
        "resultSets": [
            _variant_entry(
                "1",
                DEMO_VARIANT_ID,
                123,
                consequence="missense_variant",
                associations=[
                    {
                        "id": 1,
                        "p_value": 0.0004,
                        "phenotype_description": "Epilepsy",
                    }
                ],
            ),
            _variant_entry("3", DEMO_VARIANT_ID, 456, consequence="missense_variant"),
            _variant_entry(
                "4",
                DEMO_VARIANT_ID,
                789,
                consequence="missense_variant",
                associations=[
                    {
                        "id": 2,
                        "p_value": None,
                        "phenotype_description": "Developmental and epileptic encephalopathy",
                    }
                ],
            ),
        ],
    }


def demo_gene_payload() -> dict[str, Any]:
    """Two nodes answering for ``BRCA1``, with exon structure."""
    exons = [
        {"start": 43044295, "stop": 43045802, "feature_type": "UTR"},
        {"start": 43045678, "stop": 43045802, "feature_type": "CDS"},
        {"start": 43047643, "stop": 43047703, "feature_type": "CDS"},
        {"start": 43049121, "stop": 43049194, "feature_type": "CDS"},
        {"start": 43125271, "stop": 43125483, "feature_type": "UTR"},
    ]
    return {
        "exists": True,
        "resultSets": [
            {
                "id": "1",
                "results": [],
                "info": {
                    "gene_symbol": DEMO_GENE_SYMBOL,
                    "exons": exons,
                    "variants": [
                        {
                            "results": [{"id": "17-43045712-G-A"}],
                            "info": {
                                "ac": 12,
                                "consequence": "pLof",
                                "associations": [],
                            },
                        },
                        {
                            "results": [{"id": "17-43047650-C-T"}],
                            "info": {
                                "ac": 3,
                                "consequence": "3_prime_UTR_variant",
                                "associations": [],
                            },
                        },
                    ],
                },
            },
            {
                "id": "5",
                "results": [],
                "info": {
                    "gene_symbol": DEMO_GENE_SYMBOL,
                    "exons": exons,
                    "variants": [
                        {
                            "results": [{"id": "17-43045712-G-A"}],
                            "info": {
                                "ac": 4,
                                "consequence": "pLof",
                                "associations": [
                                    {
                                        "id": 7,
                                        "p_value": 0.01,
                                        "phenotype_id": "HP:0003002",
                                        "phenotype_description": "Breast carcinoma",
                                    }
                                ],
                            },
                        }
                    ],
                },
            },
        ],
    }


def demo_payloads() -> dict[QueryKey, Any]:
    return {
        variant_key(DEMO_VARIANT_ID): demo_variant_payload(),
        gene_key(DEMO_GENE_SYMBOL): demo_gene_payload(),
    }
