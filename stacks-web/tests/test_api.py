"""
HTTP tests for the genotype viewer, correction and export endpoints.
"""

import pytest

from app import config, db
from app.db import DataSourceUnavailable
from app.jobs import ExportLaunchError

GENOTYPES = "/api/batches/1/loci/10/genotypes"
CORRECTIONS = "/api/batches/1/loci/10/corrections"
PAGE = "/batches/1/loci/10/genotypes"


class TestGenotypeView:

    def test_view(self, client):
        resp = client.get(GENOTYPES)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["database"] == "stacks_test"
        assert data["num_samples"] == 4
        assert data["num_cols"] == 10
        assert data["num_rows"] == 1
        assert [r["genotype"] for r in data["rows"]] == ["lm", "LL", "nn"]
        assert [r["corrected"] for r in data["rows"]] == [False, False, False]
        assert data["rows"][2]["alternatives"] == ["nn", "np", "--"]
        assert data["grid"] == [[1, 2, 3] + [None] * 7]
        assert data["counts"] == {"lm": 1, "ll": 1, "nn": 1}

    def test_grid_sized_from_batch(self, client, monkeypatch):
        monkeypatch.setattr(config, "GRID_COLUMNS", 3)
        monkeypatch.setattr(config, "GRID_SIZE_FROM_BATCH", True)
        data = client.get(GENOTYPES).json()
        assert data["num_rows"] == 2
        assert data["grid"] == [[1, 2, 3], [None, None, None]]

    def test_grid_follows_rows_by_default(self, client, monkeypatch):
        monkeypatch.setattr(config, "GRID_COLUMNS", 3)
        data = client.get(GENOTYPES).json()
        assert data["num_rows"] == 2
        assert data["grid"] == [[1, 2, 3]]

    def test_locus_without_genotypes(self, client):
        resp = client.get("/api/batches/1/loci/11/genotypes")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "no_genotypes"
        assert "mappable progeny" in data["message"]
        assert data["rows"] == []

    def test_missing_database_is_unavailable(self, client):
        resp = client.get(GENOTYPES, params={"db": "no_such_db"})
        assert resp.status_code == 503
        assert "not found" in resp.json()["detail"]

    def test_invalid_database_name(self, client):
        resp = client.get(GENOTYPES, params={"db": "../etc"})
        assert resp.status_code == 400


class TestCorrections:

    def test_correct_then_revert(self, client):
        resp = client.put(CORRECTIONS, json={"genotypes": {"1": "LL"}})
        assert resp.status_code == 200
        row = resp.json()["rows"][0]
        assert row["genotype"] == "LL"
        assert row["effective"] == "ll"
        assert row["corrected"] is True

        resp = client.put(CORRECTIONS, json={"genotypes": {"1": "lm"}})
        row = resp.json()["rows"][0]
        assert row["genotype"] == "lm"
        assert row["corrected"] is False

    def test_reset(self, client):
        client.put(CORRECTIONS, json={"genotypes": {"1": "ll", "3": "np"}})
        data = client.delete(CORRECTIONS).json()
        assert not any(r["corrected"] for r in data["rows"])

    def test_unknown_code(self, client):
        resp = client.put(CORRECTIONS, json={"genotypes": {"1": "zz"}})
        assert resp.status_code == 400

    def test_unknown_sample(self, client):
        resp = client.put(CORRECTIONS, json={"genotypes": {"4": "ll"}})
        assert resp.status_code == 400

    def test_code_of_other_marker_type(self, client):
        resp = client.put(CORRECTIONS, json={"genotypes": {"1": "hk"}})
        assert resp.status_code == 400
        row = client.get(GENOTYPES).json()["rows"][0]
        assert row["corrected"] is False
        assert row["alternatives"] == ["ll", "lm", "--"]

    def test_failed_write_leaves_corrections_untouched(self, client, database):
        client.put(CORRECTIONS, json={"genotypes": {"3": "np"}})
        with pytest.raises(DataSourceUnavailable):
            db.apply_corrections(database, 1, 10, {999: "ll"}, [3])
        rows = client.get(GENOTYPES).json()["rows"]
        assert rows[2]["genotype"] == "np"
        assert rows[2]["corrected"] is True

    def test_locus_without_genotypes(self, client):
        resp = client.put("/api/batches/1/loci/11/corrections", json={"genotypes": {"1": "ll"}})
        assert resp.status_code == 404


class TestGenotypePage:

    def test_page(self, client):
        client.put(CORRECTIONS, json={"genotypes": {"3": "NP"}})
        resp = client.get(PAGE)
        assert resp.status_code == 200
        html = resp.text
        assert "Catalog Genotype Viewer" in html
        assert "Progeny 01" in html
        assert '<span class="corrected">NP</span>' in html
        assert 'id="gtype_1_10_2"' in html
        assert '<option selected="selected">ll</option>' in html
        assert html.count("<td></td>") == 7

    def test_page_without_genotypes(self, client):
        resp = client.get("/batches/1/loci/11/genotypes")
        assert resp.status_code == 200
        assert "not have enough mappable progeny" in resp.text
        assert "<form" not in resp.text

    def test_form_correct(self, client):
        resp = client.post(
            PAGE,
            data={"op": "correct", "gtype_1_10_1": "ll", "gtype_1_10_2": "ll", "gtype_1_10_3": "nn"},
            follow_redirects=False,
        )
        assert resp.status_code == 303
        assert "/batches/1/loci/10/genotypes?db=stacks_test" in resp.headers["location"]

        rows = client.get(GENOTYPES).json()["rows"]
        assert [r["corrected"] for r in rows] == [True, False, False]

    def test_form_reset(self, client):
        client.put(CORRECTIONS, json={"genotypes": {"2": "lm"}})
        resp = client.post(PAGE, data={"op": "reset"}, follow_redirects=False)
        assert resp.status_code == 303
        rows = client.get(GENOTYPES).json()["rows"]
        assert not any(r["corrected"] for r in rows)

    def test_form_unknown_operation(self, client):
        resp = client.post(PAGE, data={"op": "delete"}, follow_redirects=False)
        assert resp.status_code == 400


class TestExport:

    def test_export_is_handed_to_runner(self, client, runner):
        resp = client.post(
            "/api/batches/1/export",
            json={"email": "me@example.org", "filters": {"prog": "3"}},
        )
        assert resp.status_code == 202
        data = resp.json()
        assert data["accepted"] is True
        assert data["loci"] == 2
        assert data["email"] == "me@example.org"
        assert "-F prog=3" in data["msg"]

        job = runner.jobs[0]
        assert job.database == "stacks_test"
        assert job.batch_id == 1
        assert job.argv[-2:] == ["-F", "prog=3"]

    def test_export_without_filters_counts_all_batch_loci(self, client):
        data = client.post("/api/batches/1/export", json={"email": "me@example.org"}).json()
        assert data["loci"] == 3

    def test_bad_filter(self, client, runner):
        resp = client.post("/api/batches/1/export", json={"email": "me@example.org", "filters": {"snps": "x"}})
        assert resp.status_code == 400
        assert runner.jobs == []

    @pytest.mark.parametrize("email", ["-e", "--help@example.org", "nobody", "a b@example.org"])
    def test_email_must_be_an_address(self, client, runner, email):
        resp = client.post("/api/batches/1/export", json={"email": email})
        assert resp.status_code == 422
        assert runner.jobs == []

    def test_launch_failure(self, client, runner, monkeypatch):
        def fail(job):
            raise ExportLaunchError("Could not start export: no such program")

        monkeypatch.setattr(runner, "submit", fail)
        resp = client.post("/api/batches/1/export", json={"email": "me@example.org"})
        assert resp.status_code == 503


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
