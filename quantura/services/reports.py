from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List

import pandas as pd

from quantura.core.clock import utcnow

EXPORT_FORMATS = ("csv", "xlsx", "pdf")

EXPENSE_COLUMNS = ["id", "created_at", "amount", "category", "description", "note", "created_by"]
TRANSACTION_COLUMNS = ["id", "created_at", "type", "quantity", "warehouse_item_id", "reference", "note", "created_by"]
SUPPLIER_COLUMNS = ["id", "name", "contact_name", "email", "phone", "address", "created_at"]
AUDIT_LOG_COLUMNS = ["performed_at", "action", "model", "record_id", "performed_by"]


@dataclass(frozen=True)
class ExportFile:
    """A rendered report ready to be streamed."""
    content: bytes
    media_type: str
    filename: str


def _user_label(user: Any) -> Any:
    if user is None:
        return None
    return user.name or user.email


def _frame(rows: Iterable[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(list(rows), columns=columns)


# PUBLIC_INTERFACE
def expenses_frame(expenses: Iterable[Any]) -> pd.DataFrame:
    """Tabulate expenses; `created_by` shows the recording user's name or email."""
    return _frame(
        (
            {
                "id": str(e.id),
                "created_at": e.created_at,
                "amount": float(e.amount),
                "category": e.category,
                "description": e.description,
                "note": e.note,
                "created_by": _user_label(e.created_by_user),
            }
            for e in expenses
        ),
        EXPENSE_COLUMNS,
    )


# PUBLIC_INTERFACE
def transactions_frame(transactions: Iterable[Any]) -> pd.DataFrame:
    """Tabulate stock movements; sales show as negative quantities."""
    return _frame(
        (
            {
                "id": str(t.id),
                "created_at": t.created_at,
                "type": t.type,
                "quantity": int(t.quantity),
                "warehouse_item_id": str(t.warehouse_item_id) if t.warehouse_item_id else None,
                "reference": t.reference,
                "note": t.note,
                "created_by": _user_label(t.created_by_user),
            }
            for t in transactions
        ),
        TRANSACTION_COLUMNS,
    )


# PUBLIC_INTERFACE
def suppliers_frame(suppliers: Iterable[Any]) -> pd.DataFrame:
    """Tabulate suppliers on file."""
    return _frame(
        (
            {
                "id": str(s.id),
                "name": s.name,
                "contact_name": s.contact_name,
                "email": s.email,
                "phone": s.phone,
                "address": s.address,
                "created_at": s.created_at,
            }
            for s in suppliers
        ),
        SUPPLIER_COLUMNS,
    )


# PUBLIC_INTERFACE
def audit_logs_frame(logs: Iterable[Any]) -> pd.DataFrame:
    """Tabulate audit entries without their change snapshots."""
    return _frame(
        (
            {
                "performed_at": log.performed_at,
                "action": log.action,
                "model": log.model,
                "record_id": str(log.record_id),
                "performed_by": _user_label(log.performer),
            }
            for log in logs
        ),
        AUDIT_LOG_COLUMNS,
    )


def _to_csv(df: pd.DataFrame, filename_base: str) -> ExportFile:
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    return ExportFile(buffer.getvalue().encode("utf-8"), "text/csv", f"{filename_base}.csv")


def _to_xlsx(df: pd.DataFrame, filename_base: str) -> ExportFile:
    # Excel cannot store timezone-aware datetimes
    sheet = df.copy()
    for column in sheet.columns:
        if isinstance(sheet[column].dtype, pd.DatetimeTZDtype):
            sheet[column] = sheet[column].dt.tz_localize(None)
        elif sheet[column].dtype == object:
            sheet[column] = sheet[column].map(
                lambda v: v.replace(tzinfo=None) if hasattr(v, "tzinfo") and v.tzinfo else v
            )
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        sheet.to_excel(writer, index=False, sheet_name="Report")
    return ExportFile(
        buffer.getvalue(),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        f"{filename_base}.xlsx",
    )


def _to_pdf(df: pd.DataFrame, filename_base: str) -> ExportFile:
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import landscape, letter
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
    )
    styles = getSampleStyleSheet()
    title = f"{filename_base.replace('_', ' ').title()} ({utcnow().strftime('%Y-%m-%d %H:%M UTC')})"
    elements: list = [Paragraph(title, styles["Title"])]

    data = [list(df.columns)] + df.astype(str).values.tolist()
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    elements.append(table)
    doc.build(elements)
    return ExportFile(buffer.getvalue(), "application/pdf", f"{filename_base}.pdf")


_WRITERS: Dict[str, Callable[[pd.DataFrame, str], ExportFile]] = {
    "csv": _to_csv,
    "xlsx": _to_xlsx,
    "pdf": _to_pdf,
}


# PUBLIC_INTERFACE
def export_dataframe(df: pd.DataFrame, filename_base: str, export_format: str = "csv") -> ExportFile:
    """
    Render a DataFrame as csv, xlsx or pdf.

    Raises ValueError for any other format.
    """
    writer = _WRITERS.get((export_format or "csv").lower())
    if writer is None:
        raise ValueError(f"Unsupported export format: {export_format}")
    return writer(df, filename_base)
