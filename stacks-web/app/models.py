from __future__ import annotations
from enum import Enum
from typing import Literal
from pydantic import BaseModel, Field


class MarkerType(str, Enum):
    LMXLL = "lmxll"
    NNXNP = "nnxnp"
    HKXHK = "hkxhk"
    EFXEG = "efxeg"
    ABXCD = "abxcd"


class ObservedGenotype(BaseModel):
    sample_id: int
    genotype: str                    # raw call as stored by the pipeline
    file: str = ""                   # sample file name, used as the cell title


class Correction(BaseModel):
    sample_id: int
    genotype: str


class DisplayRow(BaseModel):
    sample_id: int
    file: str
    control_id: str                  # gtype_<batch>_<tag>_<sample>
    raw: str
    genotype: str                    # value shown: correction if present, else raw
    effective: str                   # lower-cased lookup key
    corrected: bool
    selected: str
    alternatives: list[str]


class NoGenotypes(BaseModel):
    """Locus has no observed genotypes. Not an error."""
    message: str = (
        "This marker has no genotypes, probably because this tag "
        "does not have enough mappable progeny."
    )


class GenotypeView(BaseModel):
    status: Literal["ok", "no_genotypes"]
    database: str
    batch_id: int
    tag_id: int
    num_samples: int                 # all samples in the batch
    num_cols: int
    num_rows: int                    # sized from num_samples, not from rows
    message: str | None = None
    rows: list[DisplayRow] = []
    grid: list[list[int | None]] = []    # sample ids, None for pad cells
    counts: dict[str, int] = {}


class CorrectionUpdate(BaseModel):
    genotypes: dict[int, str]


class ExportRequest(BaseModel):
    # user@host; a leading "-" would be read as an option by the export program
    email: str = Field(pattern=r"^[^\s@-][^\s@]*@[^\s@]+\.[^\s@]+$")
    data_type: Literal["haplo", "geno"] = "haplo"
    map_type: Literal["gen", "cp", "dh", "bc1", "f2", "none"] = "gen"
    depth_limit: int = Field(default=1, ge=1)
    manual_corrections: bool = False
    output_type: Literal["tsv", "xls"] = "tsv"
    filters: dict[str, str | int] = {}


class ExportStatus(BaseModel):
    accepted: bool
    loci: int
    email: str
    msg: str
