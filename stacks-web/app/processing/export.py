"""Export filters and command-line construction for batch exports."""
from __future__ import annotations

import shlex

from app.models import ExportRequest

# filter type -> (catalog_index condition, value parser)
FILTERS: dict[str, tuple[str, type]] = {
    "alle": ("alleles >= ?", int),
    "snps": ("snps >= ?", int),
    "pare": ("parents >= ?", int),
    "prog": ("progeny >= ?", int),
    "vprog": ("valid_progeny >= ?", int),
    "cata": ("cat_id = ?", int),
    "mark": ("marker = ?", str),
    "gcnt": ("genotypes >= ?", int),
}


def parse_filters(filters: dict[str, str | int]) -> tuple[list[tuple[str, object]], list[str]]:
    """Validate filters.

    Returns (sql conditions for counting loci, ``key=value`` strings for the
    export command). Raises ValueError on unknown types or bad values.
    """
    conditions: list[tuple[str, object]] = []
    args: list[str] = []
    for name, raw in filters.items():
        if name not in FILTERS:
            raise ValueError(f"Unknown filter type: {name}")
        fragment, parse = FILTERS[name]
        text = str(raw).strip()
        if not text:
            raise ValueError(f"Filter {name} needs a value")
        try:
            value = parse(text)
        except ValueError:
            raise ValueError(f"Filter {name} expects an integer, got {raw!r}") from None
        conditions.append((fragment, value))
        args.append(f"{name}={value}")
    return conditions, args


def build_export_command(
    export_cmd: str,
    database: str,
    batch_id: int,
    req: ExportRequest,
    filter_args: list[str],
) -> list[str]:
    cmd = [*shlex.split(export_cmd), "-D", database, "-b", str(batch_id)]

    if req.data_type == "haplo":
        cmd += ["-a", "haplo", "-L", str(req.depth_limit)]
    else:
        cmd += ["-a", "geno", "-m", req.map_type]
        if req.manual_corrections:
            cmd.append("-c")

    cmd += ["-e", req.email, "-t", req.output_type]
    if filter_args:
        cmd += ["-F", ",".join(filter_args)]
    return cmd
