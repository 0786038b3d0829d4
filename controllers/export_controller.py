from fastapi import HTTPException
from fastapi.responses import Response
from datetime import date
from io import BytesIO
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table as RLTable, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle

from controllers.daily_log_controller import get_daily_log
from controllers.project_controller import get_project
from core.timestamps import log_id_for
from models.daily_log import DailyLog
from models.project import Project

EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def style_excel_header(ws, row=1):
    header_font = Font(bold=True, color="FFFFFF", size=10)
    header_fill = PatternFill(start_color="1e293b", end_color="1e293b", fill_type="solid")
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")


def auto_column_width(ws):
    for col in ws.columns:
        max_len = max((len(str(cell.value or "")) for cell in col), default=0)
        ws.column_dimensions[col[0].column_letter].width = min(max_len + 3, 60)


def export_filename(project: Project, log_date: date, ext: str) -> str:
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in project.name)
    return f"GiornaleLavori_{safe_name}_{log_id_for(log_date)}.{ext}"


def render_excel(project: Project, log: DailyLog) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Giornata"
    ws.append(["Progetto", "Committente", "Impresa", "Data", "Meteo", "Temperatura (°C)", "Precipitazioni"])
    style_excel_header(ws)
    ws.append([project.name, project.client, project.contractor, log.id, log.weather.state, log.weather.temperature, log.weather.precipitation])
    auto_column_width(ws)

    ws2 = wb.create_sheet("Annotazioni")
    ws2.append(["Ora (UTC)", "Tipo", "Autore", "Ruolo", "Contenuto", "Allegati", "Firmata"])
    style_excel_header(ws2)
    for a in log.annotations:
        ws2.append([a.timestamp.strftime("%H:%M"), a.type, a.author.name, a.author.role, a.content, len(a.attachments), "Sì" if a.is_signed else "No"])
    auto_column_width(ws2)

    ws3 = wb.create_sheet("Risorse")
    ws3.append(["Tipo", "Descrizione", "Nominativo", "Impresa", "Quantità", "Note"])
    style_excel_header(ws3)
    for r in log.resources:
        ws3.append([r.type, r.description, r.name, r.company or "", r.quantity, r.notes or ""])
    auto_column_width(ws3)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def render_pdf(project: Project, log: DailyLog) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=15*mm, rightMargin=15*mm, topMargin=15*mm, bottomMargin=15*mm)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("LogTitle", parent=styles["Heading1"], fontSize=16, spaceAfter=6)
    subtitle_style = ParagraphStyle("LogSubtitle", parent=styles["Normal"], fontSize=9, textColor=colors.grey, spaceAfter=12)
    section_style = ParagraphStyle("LogSection", parent=styles["Heading2"], fontSize=12, spaceBefore=10, spaceAfter=6)
    body_style = ParagraphStyle("LogBody", parent=styles["Normal"], fontSize=9, leading=12)
    header_style = TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1e293b")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f8fafc")]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ])

    elements = [
        Paragraph(f"Giornale dei Lavori - {escape(project.name)}", title_style),
        Paragraph(f"Committente: {escape(project.client)} | Impresa: {escape(project.contractor)} | Data: {log.date.strftime('%d/%m/%Y')}", subtitle_style),
        Paragraph("Condizioni meteo", section_style),
        Paragraph(f"{log.weather.state}, {log.weather.temperature} °C, precipitazioni {log.weather.precipitation.lower()}", body_style),
        Paragraph("Annotazioni", section_style),
    ]
    if not log.annotations:
        elements.append(Paragraph("Nessuna annotazione.", body_style))
    for a in log.annotations:
        signed = " (firmata)" if a.is_signed else ""
        elements.append(Paragraph(f"<b>{escape(a.type)}</b> - {escape(a.author.name)}, {escape(a.author.role)}, {a.timestamp.strftime('%H:%M')}{signed}", body_style))
        elements.append(Paragraph(escape(a.content).replace("\n", "<br/>"), body_style))
        if a.attachments:
            captions = ", ".join(escape(att.caption) for att in a.attachments)
            elements.append(Paragraph(f"Allegati: {captions}", subtitle_style))
        elements.append(Spacer(1, 4*mm))

    elements.append(Paragraph("Risorse impiegate", section_style))
    if log.resources:
        data = [["Tipo", "Descrizione", "Nominativo", "Impresa", "Q.tà", "Note"]]
        for r in log.resources:
            data.append([r.type, r.description[:30], r.name[:30], (r.company or "")[:25], str(r.quantity), (r.notes or "")[:30]])
        t = RLTable(data, colWidths=[28*mm, 38*mm, 38*mm, 32*mm, 12*mm, 32*mm])
        t.setStyle(header_style)
        elements.append(t)
    else:
        elements.append(Paragraph("Nessuna risorsa registrata.", body_style))

    doc.build(elements)
    return buffer.getvalue()


async def export_daily_log(db, project_id: str, log_date: date, format: str = "pdf") -> Response:
    if format not in ("pdf", "excel"):
        raise HTTPException(status_code=400, detail="Format must be 'excel' or 'pdf'")
    project = await get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    log = await get_daily_log(db, project_id, log_date)
    if not log:
        raise HTTPException(status_code=404, detail=f"No log for {log_id_for(log_date)}")

    if format == "excel":
        content, media_type, ext = render_excel(project, log), EXCEL_MEDIA_TYPE, "xlsx"
    else:
        content, media_type, ext = render_pdf(project, log), "application/pdf", "pdf"
    filename = export_filename(project, log_date, ext)
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": f'attachment; filename="{filename}"'})
