import io
from datetime import datetime

import openpyxl
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .services.classes import class_roster

HEADERS = ["Enrollment No.", "Student Name", "Email", "Mentor", "Guide", "Co-Guide"]


def _name(account):
    return str(account) if account else "-"


def _roster_rows(class_group):
    """Plain rows for the class roster. Credentials are never part of an export."""
    rows = []
    for profile in class_roster(class_group):
        rows.append([
            profile.enrollment_no or "Not assigned",
            profile.account.display_name or "Not provided",
            profile.account.email,
            _name(profile.primary_mentor),
            _name(profile.guide),
            _name(profile.co_guide),
        ])
    return rows


def class_roster_workbook(class_group):
    """Returns the .xlsx bytes for one class."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = f"{class_group.name} {class_group.section}"[:31]

    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill("solid", fgColor="FFE9A0")

    for row in _roster_rows(class_group):
        ws.append(row)

    for col in ws.columns:
        max_length = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = max(12, max_length + 2)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def class_roster_pdf(class_group, generated_by=None):
    """Returns the PDF bytes for one class."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=30,
        rightMargin=30,
        topMargin=40,
        bottomMargin=40,
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph(f"<b>Class Roster: {class_group}</b>", styles["Title"]),
        Paragraph(
            f"<b>Generated By:</b> {generated_by or '-'}<br/>"
            f"<b>Generated On:</b> {datetime.now().strftime('%d-%m-%Y %H:%M')}",
            styles["Normal"],
        ),
        Spacer(1, 12),
    ]

    tbl = Table([HEADERS] + _roster_rows(class_group), colWidths=[80, 130, 170, 120, 120, 120], repeatRows=1)
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#000000")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("INNERGRID", (0, 0), (-1, -1), 0.3, colors.grey),
        ("BOX", (0, 0), (-1, -1), 0.5, colors.black),
    ]))
    story.append(tbl)

    doc.build(story)
    return buffer.getvalue()
