"""
Catalog data quality report.

Goal: a deterministic view of "is the shelter catalog complete and sane?" without
touching the map service. Used by the `quality-report` CLI command.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

from sheltermap.catalog.loader import CatalogLoadResult, load_catalog
from sheltermap.config.settings import Settings
from sheltermap.core.env import is_remote_source, resolve_project_path


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def catalog_issues(result: CatalogLoadResult) -> list[Issue]:
    if result.source_error:
        return [Issue(severity="error", code="CATALOG_LOAD_FAILED", message=result.source_error)]

    issues: list[Issue] = []
    if not result.records:
        issues.append(
            Issue(severity="error", code="CATALOG_EMPTY", message="The catalog has no usable shelters.", count=0)
        )

    if result.invalid_rows:
        issues.append(
            Issue(
                severity="warning",
                code="CATALOG_INVALID_ROWS",
                message="Some rows could not be parsed and are dropped at load time.",
                count=len(result.invalid_rows),
                sample=[f"row {r.row_number}: {r.reason}" for r in result.invalid_rows[:8]],
            )
        )

    coords = Counter((r.lat, r.lng) for r in result.records)
    dup = sorted(f"{lat},{lng}" for (lat, lng), n in coords.items() if n > 1)
    if dup:
        issues.append(
            Issue(
                severity="info",
                code="CATALOG_DUPLICATE_COORDS",
                message="Several shelters share the same coordinates (markers will overlap).",
                count=len(dup),
                sample=dup[:8],
            )
        )
    return issues


def build_quality_report(settings: Settings) -> dict[str, Any]:
    source = settings.catalog.source
    result = load_catalog(source, timeout_seconds=settings.app.http_timeout_seconds)
    issues = catalog_issues(result)

    severity_rank = {"error": 3, "warning": 2, "info": 1}
    worst = "info"
    for i in issues:
        if severity_rank.get(i.severity, 0) > severity_rank.get(worst, 0):
            worst = i.severity

    return {
        "overall": {"severity": worst, "issue_count": len(issues)},
        "source": source if is_remote_source(source) else str(resolve_project_path(source)),
        "catalog": {"record_count": len(result.records), "invalid_row_count": len(result.invalid_rows)},
        "issues": [i.as_dict() for i in issues],
    }
