import io
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from docx import Document  # type: ignore
from reportlab.lib import colors  # type: ignore
from reportlab.lib.pagesizes import A4  # type: ignore
from reportlab.lib.styles import getSampleStyleSheet  # type: ignore
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle  # type: ignore

#SH: Labels for exported documents, keyed by the UI language
EXPORT_LABELS = {
    "en": {"scenario": "Scenario", "created_at": "Created", "created_by": "Generated by", "scores": "Aspect scores"},
    "es": {"scenario": "Escenario", "created_at": "Fecha", "created_by": "Generado por", "scores": "Calificación por aspecto"},
    "fr": {"scenario": "Scénario", "created_at": "Date", "created_by": "Généré par", "scores": "Notes par aspect"},
}

def export_labels(lang: Optional[str]) -> dict:
    return EXPORT_LABELS.get((lang or "es")[:2].lower(), EXPORT_LABELS["en"])

def _heading_level(line: str) -> int:
    stripped = line.lstrip()
    return len(stripped) - len(stripped.lstrip("#")) if stripped.startswith("#") else 0

def _metadata_rows(report: dict, labels: dict) -> list:
    created_at = report.get("created_at")
    if isinstance(created_at, datetime):
        created_at = created_at.strftime("%Y-%m-%d %H:%M")
    return [
        [labels["scenario"], str(report.get("scenario_title") or "")],
        [labels["created_at"], str(created_at or "")],
        [labels["created_by"], str(report.get("user_name") or "")],
    ]

#SH: Render a report as PDF with reportlab
def report_to_pdf(report: dict, scores: dict, lang: Optional[str] = None) -> bytes:
    labels = export_labels(lang)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=report.get("title") or "Report")
    styles = getSampleStyleSheet()
    story = [Paragraph(escape(report.get("title") or "Report"), styles["Title"]), Spacer(1, 12)]

    meta_table = Table(_metadata_rows(report, labels))
    meta_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("TEXTCOLOR", (0, 0), (0, -1), colors.grey),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
    ]))
    story.extend([meta_table, Spacer(1, 18)])

    for line in (report.get("content") or "").splitlines():
        if not line.strip():
            story.append(Spacer(1, 6))
            continue
        level = _heading_level(line)
        if level:
            style = styles["Heading2"] if level <= 2 else styles["Heading3"]
            story.append(Paragraph(escape(line.lstrip("# ").strip()), style))
        else:
            story.append(Paragraph(escape(line), styles["Normal"]))

    if scores:
        story.extend([Spacer(1, 18), Paragraph(labels["scores"], styles["Heading2"])])
        score_table = Table([[aspect, str(score)] for aspect, score in scores.items()])
        score_table.setStyle(TableStyle([
            ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
            ("BACKGROUND", (0, 0), (0, -1), colors.beige),
            ("ALIGN", (1, 0), (1, -1), "CENTER"),
        ]))
        story.append(score_table)

    doc.build(story)
    return buffer.getvalue()

#SH: Render a report as a Word document
def report_to_docx(report: dict, scores: dict, lang: Optional[str] = None) -> bytes:
    labels = export_labels(lang)
    document = Document()
    document.add_heading(report.get("title") or "Report", level=0)

    for label, value in _metadata_rows(report, labels):
        paragraph = document.add_paragraph()
        paragraph.add_run(f"{label}: ").bold = True
        paragraph.add_run(value)

    for line in (report.get("content") or "").splitlines():
        if not line.strip():
            continue
        level = _heading_level(line)
        if level:
            document.add_heading(line.lstrip("# ").strip(), level=min(level, 3))
        else:
            document.add_paragraph(line)

    if scores:
        document.add_heading(labels["scores"], level=2)
        table = document.add_table(rows=0, cols=2)
        table.style = "Table Grid"
        for aspect, score in scores.items():
            cells = table.add_row().cells
            cells[0].text = aspect
            cells[1].text = str(score)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
