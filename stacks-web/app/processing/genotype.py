"""Reconcile observed genotype calls with manual corrections."""
from __future__ import annotations

from collections.abc import Iterable, Mapping

from app.models import Correction, DisplayRow, NoGenotypes, ObservedGenotype
from app.processing.markers import NO_CALL, alternatives_for, is_known_code, marker_type_for


def control_id(batch_id: int, tag_id: int, sample_id: int) -> str:
    return f"gtype_{batch_id}_{tag_id}_{sample_id}"


def _correction_code(correction: Correction | str | None) -> str:
    if correction is None:
        return ""
    if isinstance(correction, Correction):
        return correction.genotype or ""
    return correction


def build_display_rows(
    samples: Iterable[ObservedGenotype],
    corrections: Mapping[int, Correction | str],
    batch_id: int = 0,
    tag_id: int = 0,
) -> list[DisplayRow] | NoGenotypes:
    """Merge raw calls and corrections into one row per sample.

    A non-blank correction overrides the raw call and is flagged as
    corrected. Input order is preserved. Returns ``NoGenotypes`` when there
    are no observed samples.
    """
    rows = []
    for sample in samples:
        corrected = _correction_code(corrections.get(sample.sample_id)).strip()
        shown = corrected if corrected else (sample.genotype or "")
        effective = shown.lower()
        alternatives = list(alternatives_for(effective))
        rows.append(DisplayRow(
            sample_id=sample.sample_id,
            file=sample.file,
            control_id=control_id(batch_id, tag_id, sample.sample_id),
            raw=sample.genotype or "",
            genotype=shown,
            effective=effective,
            corrected=bool(corrected),
            selected=effective if effective in alternatives else NO_CALL,
            alternatives=alternatives,
        ))
    if not rows:
        return NoGenotypes()
    return rows


def plan_corrections(
    rows: list[DisplayRow],
    submitted: Mapping[int, str],
    skip_unchanged: bool = False,
) -> tuple[dict[int, str], list[int]]:
    """Diff submitted codes against the current rows.

    Returns (upserts, deletes). A blank value, or one equal to the raw call,
    removes the correction; other values are kept in the case submitted.
    With ``skip_unchanged`` values matching the pre-selected entry are
    ignored, since a form posts every select.
    Raises ValueError for unknown samples, unknown codes, and codes of a
    different marker type than the raw call.
    """
    by_sample = {row.sample_id: row for row in rows}
    upserts: dict[int, str] = {}
    deletes: list[int] = []

    for sample_id, value in submitted.items():
        row = by_sample.get(sample_id)
        if row is None:
            raise ValueError(f"Sample {sample_id} has no genotype at this locus")

        text = (value or "").strip()
        code = text.lower()
        if skip_unchanged and code == row.selected:
            continue

        if not code or code == row.raw.lower():
            if row.corrected:
                deletes.append(sample_id)
            continue

        if not is_known_code(code):
            raise ValueError(f"Unknown genotype code: {value}")
        raw_type = marker_type_for(row.raw)
        new_type = marker_type_for(code)
        if raw_type is not None and new_type is not None and new_type != raw_type:
            raise ValueError(
                f"Genotype {value} is not a {raw_type.value} call (sample {sample_id} is {row.raw})"
            )

        if not (row.corrected and text == row.genotype):
            upserts[sample_id] = text

    return upserts, deletes


def count_genotypes(rows: list[DisplayRow]) -> dict[str, int]:
    """Tally effective codes, corrected calls included."""
    counts: dict[str, int] = {}
    for row in rows:
        key = row.effective or NO_CALL
        counts[key] = counts.get(key, 0) + 1
    return counts
