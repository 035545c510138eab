"""Read company names from, and write enriched results to, Excel workbooks."""

import io
import logging
from pathlib import Path
from typing import Iterable, Optional
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils.exceptions import InvalidFileException

from enricher.config import settings
from enricher.errors import SpreadsheetImportError
from enricher.models import Contact, WorkItem

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Company Name",
    "Website",
    "Description",
    "Revenue",
    "Confirmed Laboratories",
    "Presumed Laboratories",
    "Contacts",
    "Status",
    "Error",
]


def read_companies(data: bytes) -> list[WorkItem]:
    """Build work items from the first column of the first worksheet.

    Rows whose first cell is not a non-blank string are skipped. Ids follow
    the order of the remaining rows, starting at 0.
    """
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as e:
        logger.warning(f"Could not open workbook: {e}")
        raise SpreadsheetImportError(
            "Failed to parse the spreadsheet. Please make sure it is a valid .xlsx file "
            "with company names in the first column."
        ) from e

    try:
        sheet = workbook.worksheets[0]
        names = []
        for row in sheet.iter_rows(values_only=True):
            value = row[0] if row else None
            if isinstance(value, str) and value.strip():
                names.append(value.strip())
    finally:
        workbook.close()

    if not names:
        raise SpreadsheetImportError("No company names found in the first column of the spreadsheet.")

    logger.info(f"Imported {len(names)} company names")
    return [WorkItem(id=index, name=name) for index, name in enumerate(names)]


def format_contact(contact: Contact, missing: Optional[str] = None) -> str:
    missing = missing or settings.missing_contact_field
    return (
        f"Name: {contact.name}, Title: {contact.title}, "
        f"Email: {contact.email or missing}, Phone: {contact.phone or missing}"
    )


def result_row(item: WorkItem, placeholder: Optional[str] = None) -> list[str]:
    """Flatten one work item into export column order."""
    placeholder = placeholder or settings.missing_value_placeholder
    record = item.data

    if record is None:
        website = description = revenue = confirmed = presumed = contacts = ""
    else:
        website = record.website
        description = record.description
        revenue = record.revenue
        confirmed = ", ".join(record.laboratories.confirmed)
        presumed = ", ".join(record.laboratories.presumed)
        contacts = "\n".join(format_contact(c) for c in record.contacts)

    return [
        item.name,
        website or placeholder,
        description or placeholder,
        revenue or placeholder,
        confirmed or placeholder,
        presumed or placeholder,
        contacts or placeholder,
        item.status.value,
        item.error or "",
    ]


def write_results(
    items: Iterable[WorkItem],
    placeholder: Optional[str] = None,
) -> bytes:
    """Render work items as an .xlsx file, one row per item."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = settings.export_sheet_title

    sheet.append(EXPORT_COLUMNS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    contacts_column = EXPORT_COLUMNS.index("Contacts") + 1
    for item in items:
        sheet.append(result_row(item, placeholder))
        sheet.cell(row=sheet.max_row, column=contacts_column).alignment = Alignment(wrap_text=True)

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def export_filename(source_name: Optional[str]) -> str:
    stem = Path(source_name).stem if source_name else "data"
    return f"enriched_{stem or 'data'}.xlsx"
