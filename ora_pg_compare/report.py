from __future__ import annotations

import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from ora_pg_compare.errors import ReportGenerationError
from ora_pg_compare.models import ComparisonResult, DbObject, ObjectKind

LOGGER = logging.getLogger(__name__)

LISTING_HEADERS = ["Name", "Type", "Schema"]
DIFF_HEADERS = ["Name", "Type", "Schema", "Status"]

HEADER_FILL = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
HEADER_FONT = Font(bold=True)

_WRITE_ERRORS = (OSError, ValueError, IndexError, IllegalCharacterError)


def _sheet_name(name: str) -> str:
    safe = name.replace("/", "_").replace("\\", "_").replace(".", "_")
    return safe[:31] if len(safe) > 31 else safe


def only_in(label: str) -> str:
    return f"Only in {label}"


class ReportBuilder:
    """Accumulates sheets into one workbook and serializes it once.

    Use as a context manager so the workbook is released on every exit path:

        with ReportBuilder() as rb:
            rb.add_listing_sheet("Oracle Objects", objects)
            data = rb.to_bytes()
    """

    def __init__(self):
        self._wb: Workbook | None = Workbook()
        self._wb.remove(self._wb.active)

    def __enter__(self) -> ReportBuilder:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._wb is not None:
            self._wb.close()
            self._wb = None

    @property
    def workbook(self) -> Workbook:
        if self._wb is None:
            raise ReportGenerationError("Report workbook already finalized")
        return self._wb

    def _write_sheet(self, title: str, headers: list[str], rows: list[list[str]]) -> None:
        ws = self.workbook.create_sheet(_sheet_name(title))
        try:
            ws.append(headers)
            for row in rows:
                ws.append(row)
        except _WRITE_ERRORS as exc:
            raise ReportGenerationError(f"Could not write sheet '{title}': {exc}") from exc

        for cell in ws[1]:
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT

        # Width-fit each column to its longest value
        for i, header in enumerate(headers, start=1):
            width = max([len(header)] + [len(str(r[i - 1] or "")) for r in rows])
            ws.column_dimensions[get_column_letter(i)].width = width + 2

    def add_listing_sheet(self, title: str, objects: list[DbObject]) -> None:
        self._write_sheet(title, LISTING_HEADERS, [[o.name, o.type, o.schema_name] for o in objects])

    def add_difference_sheet(self, title: str, result: ComparisonResult, label_a: str, label_b: str) -> None:
        rows = [[o.name, o.type, o.schema_name, only_in(label_a)] for o in result.only_in_a]
        rows += [[o.name, o.type, o.schema_name, only_in(label_b)] for o in result.only_in_b]
        self._write_sheet(title, DIFF_HEADERS, rows)

    def to_bytes(self) -> bytes:
        bio = io.BytesIO()
        try:
            self.workbook.save(bio)
        except _WRITE_ERRORS as exc:
            raise ReportGenerationError(f"Could not serialize report workbook: {exc}") from exc
        finally:
            self.close()
        return bio.getvalue()


def build_report(
    results: list[ComparisonResult],
    label_a: str,
    label_b: str,
    include_listings: bool = True,
) -> bytes:
    with ReportBuilder() as rb:
        if include_listings:
            everything = next((r for r in results if r.kind == ObjectKind.ALL_OBJECTS), None)
            if everything is not None:
                rb.add_listing_sheet(f"{label_a} Objects", everything.objects_a)
                rb.add_listing_sheet(f"{label_b} Objects", everything.objects_b)
        for result in results:
            rb.add_difference_sheet(result.sheet_name, result, label_a, label_b)
        data = rb.to_bytes()
    LOGGER.info("Built report with %d difference sheets (%d bytes)", len(results), len(data))
    return data
