"""Catalog genotype viewer and manual correction endpoints."""
from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app import config, db
from app.context import LocusContext, ViewContext
from app.models import CorrectionUpdate, GenotypeView, NoGenotypes
from app.processing.genotype import build_display_rows, count_genotypes, plan_corrections
from app.processing.layout import grid_row_count, layout_grid

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


def sample_title(file: str) -> str:
    """Sample file name as a cell title: underscores to spaces, first letter upper-cased."""
    text = (file or "").replace("_", " ")
    return text[:1].upper() + text[1:]


templates.env.filters["sample_title"] = sample_title


def load_genotype_view(ctx: ViewContext) -> GenotypeView:
    """Read one locus and reconcile it into a view.

    The row count is sized from every sample in the batch, independently
    of how many samples have a genotype at this locus.
    """
    columns = config.GRID_COLUMNS
    num_samples = db.count_batch_samples(ctx.database, ctx.batch_id)
    num_rows = grid_row_count(num_samples, columns)
    observed, corrections = db.fetch_locus_genotypes(ctx.database, ctx.batch_id, ctx.tag_id)

    result = build_display_rows(observed, corrections, ctx.batch_id, ctx.tag_id)
    common = dict(
        database=ctx.database,
        batch_id=ctx.batch_id,
        tag_id=ctx.tag_id,
        num_samples=num_samples,
        num_cols=columns,
        num_rows=num_rows,
    )
    if isinstance(result, NoGenotypes):
        return GenotypeView(status="no_genotypes", message=result.message, **common)

    grid = layout_grid(
        [row.sample_id for row in result],
        columns,
        rows=num_rows if config.GRID_SIZE_FROM_BATCH else None,
    )
    return GenotypeView(status="ok", rows=result, grid=grid, counts=count_genotypes(result), **common)


def _apply_corrections(ctx: ViewContext, submitted: dict[int, str], skip_unchanged: bool):
    view = load_genotype_view(ctx)
    if view.status != "ok":
        raise HTTPException(404, "Locus has no genotypes")
    try:
        upserts, deletes = plan_corrections(view.rows, submitted, skip_unchanged=skip_unchanged)
    except ValueError as e:
        raise HTTPException(400, str(e))

    db.apply_corrections(ctx.database, ctx.batch_id, ctx.tag_id, upserts, deletes)


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------

@router.get("/api/batches/{batch_id}/loci/{tag_id}/genotypes", response_model=GenotypeView)
async def get_genotypes(ctx: LocusContext):
    """Per-sample genotypes for a locus, corrections applied."""
    return load_genotype_view(ctx)


@router.put("/api/batches/{batch_id}/loci/{tag_id}/corrections", response_model=GenotypeView)
async def update_corrections(body: CorrectionUpdate, ctx: LocusContext):
    """Correct the genotype of the given samples.

    Submitting the raw call (or an empty value) removes a sample's
    correction; other samples are left untouched. Corrections are stored
    and shown in the case submitted, and must belong to the same marker
    type as the raw call.
    """
    _apply_corrections(ctx, body.genotypes, skip_unchanged=False)
    return load_genotype_view(ctx)


@router.delete("/api/batches/{batch_id}/loci/{tag_id}/corrections", response_model=GenotypeView)
async def reset_corrections(ctx: LocusContext):
    """Remove every correction at this locus, returning to the raw calls."""
    db.delete_corrections(ctx.database, ctx.batch_id, ctx.tag_id)
    return load_genotype_view(ctx)


# ---------------------------------------------------------------------------
# HTML page
# ---------------------------------------------------------------------------

@router.get("/batches/{batch_id}/loci/{tag_id}/genotypes", response_class=HTMLResponse)
async def genotypes_page(request: Request, ctx: LocusContext):
    view = load_genotype_view(ctx)
    return templates.TemplateResponse(
        request,
        "catalog_genotypes.html",
        {
            "page_title": "Catalog Genotype Viewer",
            "site_title": config.SITE_TITLE,
            "view": view,
            "rows_by_id": {row.sample_id: row for row in view.rows},
        },
    )


@router.post("/batches/{batch_id}/loci/{tag_id}/genotypes")
async def submit_genotypes_form(request: Request, ctx: LocusContext):
    """Form target for the viewer page: op=correct saves the selects, op=reset clears."""
    form = await request.form()
    op = form.get("op", "")

    if op == "reset":
        db.delete_corrections(ctx.database, ctx.batch_id, ctx.tag_id)
    elif op == "correct":
        prefix = f"gtype_{ctx.batch_id}_{ctx.tag_id}_"
        submitted: dict[int, str] = {}
        for key, value in form.items():
            if not key.startswith(prefix):
                continue
            try:
                submitted[int(key[len(prefix):])] = str(value)
            except ValueError:
                raise HTTPException(400, f"Invalid genotype field: {key}")
        _apply_corrections(ctx, submitted, skip_unchanged=True)
    else:
        raise HTTPException(400, f"Unknown operation: {op}")

    url = request.url_for("genotypes_page", batch_id=ctx.batch_id, tag_id=ctx.tag_id)
    return RedirectResponse(f"{url}?db={ctx.database}", status_code=303)
