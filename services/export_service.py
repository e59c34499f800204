"""
Export Service - Excel workbooks and invoice PDFs.
"""

import io
import logging
from datetime import datetime
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADER_FONT = Font(bold=True, color='FFFFFF')
HEADER_FILL = PatternFill(start_color='1F4E79', end_color='1F4E79', fill_type='solid')
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

BRAND_BLUE = colors.HexColor('#1F4E79')


def _cell_value(value):
    if isinstance(value, (dict, list)):
        return str(value)
    return value


def export_to_excel(rows: List[Dict], sheet_name: str = 'Sheet1',
                    columns: Optional[List[str]] = None) -> bytes:
    """
    Write rows to a single-sheet workbook with a styled header row.

    Args:
        rows: One dict per row
        sheet_name: Worksheet title (Excel allows 31 characters)
        columns: Header order; defaults to the keys of the first row

    Returns:
        xlsx file content
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = (sheet_name or 'Sheet1')[:31]

    if columns is None:
        columns = list(rows[0].keys()) if rows else []

    for col_idx, header in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal='center')
        cell.border = THIN_BORDER

        width = max([len(str(header))] + [len(str(r.get(header) or '')) for r in rows])
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(width + 2, 12), 50)

    for row_idx, row in enumerate(rows, 2):
        for col_idx, header in enumerate(columns, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=_cell_value(row.get(header)))
            cell.border = THIN_BORDER

    output = io.BytesIO()
    wb.save(output)
    logger.info(f"Exported {len(rows)} rows to sheet '{ws.title}'")
    return output.getvalue()


def _money(value) -> str:
    return f"${(value or 0):,.0f}"


def render_invoice_pdf(invoice: Dict) -> bytes:
    """
    Render the invoice for an order.

    Args:
        invoice: Payload from OrderService.invoice_data

    Returns:
        PDF file content
    """
    order = invoice['order']
    business = invoice.get('business') or {}
    client = invoice.get('client') or {}
    equipment = invoice.get('equipment') or {}

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter,
                            title=f"Factura {order.get('order_number', '')}")
    story = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=BRAND_BLUE,
        spaceAfter=6,
    )
    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=13,
        textColor=BRAND_BLUE,
        spaceAfter=8
    )

    # Business header
    story.append(Paragraph(escape(business.get('name') or 'ServiTech Pro'), title_style))
    header_lines = [
        f"NIT: {business.get('tax_id') or ''}",
        business.get('address') or '',
        f"{business.get('phone') or ''}  {business.get('email') or ''}",
    ]
    for line in header_lines:
        if line.strip():
            story.append(Paragraph(escape(line), styles['Normal']))
    story.append(Spacer(1, 0.25 * inch))

    info = [
        ['Factura:', order.get('order_number', '')],
        ['Fecha:', (order.get('completed_at') or datetime.utcnow().isoformat())[:10]],
        ['Estado:', order.get('status', '')],
        ['Cliente:', client.get('full_name', '')],
        ['Documento:', client.get('national_id', '')],
        ['Teléfono:', client.get('phone', '')],
        ['Equipo:', f"{equipment.get('type', '')} {equipment.get('brand', '')} {equipment.get('model', '')}".strip()],
        ['Serial:', equipment.get('serial_number') or ''],
    ]
    info_table = Table(info, colWidths=[1.5 * inch, 4.5 * inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#666666')),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(info_table)
    story.append(Spacer(1, 0.25 * inch))

    if order.get('technical_diagnosis'):
        story.append(Paragraph("Diagnóstico", heading_style))
        story.append(Paragraph(escape(order['technical_diagnosis']), styles['Normal']))
        story.append(Spacer(1, 0.2 * inch))

    items = invoice.get('items') or []
    if items:
        story.append(Paragraph("Repuestos", heading_style))
        rows = [['Repuesto', 'Cant.', 'Precio', 'Total']]
        for item in items:
            part = item.get('part') or {}
            rows.append([
                part.get('name', ''),
                str(item.get('quantity', 0)),
                _money(item.get('price_at_time')),
                _money(item.get('line_total')),
            ])
        items_table = Table(rows, colWidths=[3 * inch, 0.8 * inch, 1.2 * inch, 1.2 * inch])
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), BRAND_BLUE),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ]))
        story.append(items_table)
        story.append(Spacer(1, 0.25 * inch))

    totals = [
        ['Repuestos:', _money(invoice.get('parts_subtotal'))],
        ['Mano de obra:', _money(invoice.get('labor_cost'))],
        ['TOTAL:', _money(invoice.get('total'))],
    ]
    totals_table = Table(totals, colWidths=[4.2 * inch, 2 * inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), BRAND_BLUE),
        ('LINEABOVE', (0, -1), (-1, -1), 1.5, BRAND_BLUE),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(totals_table)

    methods = [m for m in business.get('payment_methods') or [] if m.get('active', True)]
    if methods:
        story.append(Spacer(1, 0.3 * inch))
        story.append(Paragraph("Medios de pago", heading_style))
        for method in methods:
            story.append(Paragraph(
                f"<b>{escape(method.get('name', ''))}</b>: {escape(method.get('details', ''))}",
                styles['Normal']
            ))

    doc.build(story)
    logger.info(f"Rendered invoice PDF for {order.get('order_number')}")
    return buffer.getvalue()
