"""
Proof of Reserve Commitments

This module provides:
- Reserve list parsing, canonical ordering and commitment building
- Bar list formatting from CSV/TSV/JSON exports
- Test vector checking against recomputed commitments

Public API:
- Types: ReserveCommitment, FormatOptions, ReserveVector
- Functions: build_commitment, build_commitment_from_file, compute_por_output,
  format_bar_list, format_bar_list_file, check_vector, check_vector_file
"""

from core.por.reserve_commitment import (
    ReserveCommitment,
    build_commitment,
    build_commitment_from_file,
    canonical_sort_units,
    check_totals,
    check_unique_serials,
    compute_leaf_hashes,
    compute_por_output,
    parse_reserve_list,
    sum_fine_gold_grams,
)
from core.por.barlist_format import (
    FormatOptions,
    detect_input_format,
    dumps_reserve_list,
    format_bar_list,
    format_bar_list_file,
    normalize_fineness,
    parse_integer_grams,
)
from core.por.vectors import ReserveVector, check_vector, check_vector_file

__all__ = [
    # Commitment
    "ReserveCommitment",
    "build_commitment",
    "build_commitment_from_file",
    "canonical_sort_units",
    "check_totals",
    "check_unique_serials",
    "compute_leaf_hashes",
    "compute_por_output",
    "parse_reserve_list",
    "sum_fine_gold_grams",
    # Formatting
    "FormatOptions",
    "detect_input_format",
    "dumps_reserve_list",
    "format_bar_list",
    "format_bar_list_file",
    "normalize_fineness",
    "parse_integer_grams",
    # Vectors
    "ReserveVector",
    "check_vector",
    "check_vector_file",
]
