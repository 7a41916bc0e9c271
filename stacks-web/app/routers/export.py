from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app import config, db
from app.context import BatchContext
from app.jobs import ExportJob, JobRunner, get_job_runner
from app.models import ExportRequest, ExportStatus
from app.processing.export import build_export_command, parse_filters

router = APIRouter()


@router.post("/api/batches/{batch_id}/export", response_model=ExportStatus, status_code=202)
async def export_batch(
    body: ExportRequest,
    ctx: BatchContext,
    runner: JobRunner = Depends(get_job_runner),
):
    """Start a background export of a batch.

    Returns as soon as the job is handed off; the export program emails
    the submitter when it is done.
    """
    try:
        conditions, filter_args = parse_filters(body.filters)
    except ValueError as e:
        raise HTTPException(400, str(e))

    loci = db.count_loci(ctx.database, ctx.batch_id, conditions)

    argv = build_export_command(config.EXPORT_CMD, ctx.database, ctx.batch_id, body, filter_args)
    job = ExportJob(database=ctx.database, batch_id=ctx.batch_id, email=body.email, argv=argv)
    runner.submit(job)

    return ExportStatus(accepted=True, loci=loci, email=body.email, msg=job.command_line)
