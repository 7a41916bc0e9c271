"""Hand export jobs to a runner that is detached from the request."""
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class ExportLaunchError(Exception):
    """The export job could not be started."""


@dataclass(frozen=True)
class ExportJob:
    database: str
    batch_id: int
    email: str
    argv: list[str] = field(default_factory=list)

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)


class JobRunner:
    def submit(self, job: ExportJob) -> None:
        raise NotImplementedError


class SubprocessJobRunner(JobRunner):
    """Start the export program in its own session and forget about it.

    The program emails the submitter when it finishes; nothing is reported
    back to the request.
    """

    def submit(self, job: ExportJob) -> None:
        try:
            proc = subprocess.Popen(
                job.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                shell=False,
            )
        except OSError as e:
            logger.error("Export launch failed for batch %s: %s", job.batch_id, e)
            raise ExportLaunchError(f"Could not start export: {e}") from e
        logger.info("Export started (pid %s) for %s batch %s, notifying %s", proc.pid, job.database, job.batch_id, job.email)


_runner: JobRunner = SubprocessJobRunner()


def get_job_runner() -> JobRunner:
    return _runner
