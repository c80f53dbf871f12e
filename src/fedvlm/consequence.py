"""Consequence codes to human-readable labels.

Known codes use hand-curated labels. Anything else goes through a
best-effort heuristic (underscores to spaces, first letter upper-cased) that
is not guaranteed to produce correct biological terminology; unknown codes
never raise.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

CONSEQUENCE_LABELS: Final = MappingProxyType(
    {
        "pLof": "pLoF",
        "lc_lof": "LC pLoF",
        "lof_flag": "pLoF flag",
        "mis": "Missense",
        "syn": "Synonymous",
        "transcript_ablation": "Transcript ablation",
        "splice_acceptor_variant": "Splice acceptor variant",
        "splice_donor_variant": "Splice donor variant",
        "stop_gained": "Stop gained",
        "frameshift_variant": "Frameshift variant",
        "stop_lost": "Stop lost",
        "start_lost": "Start lost",
        "initiator_codon_variant": "Initiator codon variant",
        "transcript_amplification": "Transcript amplification",
        "inframe_insertion": "In-frame insertion",
        "inframe_deletion": "In-frame deletion",
        "missense_variant": "Missense variant",
        "protein_altering_variant": "Protein-altering variant",
        "splice_region_variant": "Splice region variant",
        "incomplete_terminal_codon_variant": "Incomplete terminal codon variant",
        "start_retained_variant": "Start retained variant",
        "stop_retained_variant": "Stop retained variant",
        "synonymous_variant": "Synonymous variant",
        "coding_sequence_variant": "Coding sequence variant",
        "mature_miRNA_variant": "Mature miRNA variant",
        "5_prime_UTR_variant": "5' UTR variant",
        "3_prime_UTR_variant": "3' UTR variant",
        "non_coding_transcript_exon_variant": "Non-coding transcript exon variant",
        "non_coding_exon_variant": "Non-coding exon variant",
        "intron_variant": "Intron variant",
        "NMD_transcript_variant": "NMD transcript variant",
        "non_coding_transcript_variant": "Non-coding transcript variant",
        "nc_transcript_variant": "Non-coding transcript variant",
        "upstream_gene_variant": "Upstream gene variant",
        "downstream_gene_variant": "Downstream gene variant",
        "TFBS_ablation": "TFBS ablation",
        "TFBS_amplification": "TFBS amplification",
        "TF_binding_site_variant": "TF binding site variant",
        "regulatory_region_ablation": "Regulatory region ablation",
        "regulatory_region_amplification": "Regulatory region amplification",
        "feature_elongation": "Feature elongation",
        "regulatory_region_variant": "Regulatory region variant",
        "feature_truncation": "Feature truncation",
        "intergenic_variant": "Intergenic variant",
    }
)


def translate(raw: str) -> str:
    """Return the display label for a raw consequence code.

    Example:
        >>> translate("3_prime_UTR_variant")
        "3' UTR variant"
        >>> translate("custom_weird_code")
        'Custom weird code'
    """
    label = CONSEQUENCE_LABELS.get(raw)
    if label is not None:
        return label
    return _fallback_label(raw)


def _fallback_label(raw: str) -> str:
    segments = raw.split("_")
    first = segments[0]
    segments[0] = first[:1].upper() + first[1:]
    return " ".join(segments)
