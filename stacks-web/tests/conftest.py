import pytest
from fastapi.testclient import TestClient

from app import config, db
from app.jobs import JobRunner, get_job_runner
from app.main import app

BATCH_ID = 1
TAG_ID = 10
EMPTY_TAG_ID = 11


class RecordingRunner(JobRunner):
    """Collects submitted jobs instead of starting processes."""

    def __init__(self):
        self.jobs = []

    def submit(self, job):
        self.jobs.append(job)


def seed(database: str):
    conn = db.init_db(database)
    conn.executemany(
        "INSERT INTO samples (id, batch_id, sample_id, type, file) VALUES (?, ?, ?, ?, ?)",
        [
            (1, BATCH_ID, 1, "progeny", "progeny_01"),
            (2, BATCH_ID, 2, "progeny", "progeny_02"),
            (3, BATCH_ID, 3, "progeny", "progeny_03"),
            (4, BATCH_ID, 4, "progeny", "progeny_04"),
        ],
    )
    conn.executemany(
        "INSERT INTO catalog_genotypes (batch_id, catalog_id, sample_id, genotype) VALUES (?, ?, ?, ?)",
        [
            (BATCH_ID, TAG_ID, 1, "lm"),
            (BATCH_ID, TAG_ID, 2, "LL"),
            (BATCH_ID, TAG_ID, 3, "nn"),
        ],
    )
    conn.executemany(
        """INSERT INTO catalog_index
           (batch_id, cat_id, alleles, snps, parents, progeny, valid_progeny, marker, genotypes)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        [
            (BATCH_ID, TAG_ID, 2, 1, 2, 3, 3, "lmxll", 3),
            (BATCH_ID, EMPTY_TAG_ID, 1, 0, 1, 0, 0, "", 0),
            (BATCH_ID, 12, 4, 3, 2, 40, 38, "abxcd", 38),
            (2, 1, 2, 1, 2, 10, 10, "nnxnp", 10),
        ],
    )
    conn.commit()


@pytest.fixture
def database(tmp_path, monkeypatch):
    """A seeded, temporary default database."""
    monkeypatch.setattr(config, "DB_DIR", tmp_path)
    monkeypatch.setattr(config, "DEFAULT_DATABASE", "stacks_test")
    seed("stacks_test")
    yield "stacks_test"
    db.close_all()


@pytest.fixture
def runner():
    recorder = RecordingRunner()
    app.dependency_overrides[get_job_runner] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_job_runner, None)


@pytest.fixture
def client(database, runner):
    with TestClient(app) as c:
        yield c
