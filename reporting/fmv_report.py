"""
FMV Report - One-Page Fair Market Value Summary

Generates a PDF summarising the crowd FMV for a single property:
estimate, confidence, reference values, divergence and the
percentile spread of guesses.

Uses ReportLab for deterministic PDF generation (same input = same
layout).
"""

from dataclasses import dataclass
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from core.fmv_engine import FmvConfidence, FmvResult
from utils.formatting import format_currency, format_percent


# =============================================================================
# Report Generation Result Types
# =============================================================================

@dataclass
class ReportSuccess:
    """Returned when PDF generation succeeds."""
    path: Path
    guess_count: int


# Plain-language reading of each confidence tier
CONFIDENCE_NOTES = {
    FmvConfidence.NONE: "No guesses yet. The estimate is the official WOZ value.",
    FmvConfidence.LOW: "Few guesses. The estimate leans mostly on the WOZ value.",
    FmvConfidence.MEDIUM: "Several guesses. The estimate leans mostly on the crowd.",
    FmvConfidence.HIGH: "Ten or more guesses. The estimate is the crowd's alone.",
}


# =============================================================================
# Color Palette
# =============================================================================

class Palette:
    """Print-friendly palette: charcoal text on white."""
    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    SLATE = colors.Color(0.35, 0.38, 0.42)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    ACCENT_LIGHT = colors.Color(0.92, 0.94, 0.97)
    SUCCESS = colors.Color(0.15, 0.4, 0.25)
    WARNING = colors.Color(0.5, 0.4, 0.15)


def get_report_styles():
    """Paragraph styles for the FMV report."""
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='ReportTitle',
        parent=styles['Normal'],
        fontSize=18,
        leading=23,
        textColor=Palette.CHARCOAL,
        alignment=TA_LEFT,
        fontName='Helvetica-Bold',
        spaceAfter=4*mm,
    ))

    styles.add(ParagraphStyle(
        name='ReportSubtitle',
        parent=styles['Normal'],
        fontSize=10,
        leading=14,
        textColor=Palette.SLATE,
        fontName='Helvetica',
        spaceAfter=2*mm,
    ))

    styles.add(ParagraphStyle(
        name='SectionTitle',
        parent=styles['Normal'],
        fontSize=12,
        leading=16,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica-Bold',
        spaceBefore=14,
        spaceAfter=8,
    ))

    styles.add(ParagraphStyle(
        name='SmallText',
        parent=styles['Normal'],
        fontSize=8,
        leading=12,
        textColor=Palette.GRAY,
        fontName='Helvetica',
    ))

    return styles


class FmvReportGenerator:
    """
    Generates one-page FMV report PDFs.

    Usage:
        generator = FmvReportGenerator(currency="EUR")
        result = generator.generate(fmv_result, "Keizersgracht 1, Amsterdam", path)
    """

    PAGE_WIDTH, PAGE_HEIGHT = A4
    MARGIN = 18*mm

    def __init__(self, currency: str = "EUR"):
        self.currency = currency
        self.styles = get_report_styles()

    def generate(
        self,
        result: FmvResult,
        address: str,
        output_path: Path,
        report_date: Optional[date] = None,
    ) -> ReportSuccess:
        """
        Write the FMV report to a PDF file.

        Args:
            result: FMV Engine result
            address: Property address for the heading
            output_path: Destination PDF path
            report_date: Date printed on the report (default: today)

        Returns:
            ReportSuccess with the written path
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.generate_to_buffer(result, address, report_date))
        return ReportSuccess(path=output_path, guess_count=result.guess_count)

    def generate_to_buffer(
        self,
        result: FmvResult,
        address: str,
        report_date: Optional[date] = None,
    ) -> bytes:
        """Generate PDF and return as bytes (for testing or streaming)."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.MARGIN,
            rightMargin=self.MARGIN,
            topMargin=self.MARGIN,
            bottomMargin=self.MARGIN,
            title=f"Fair Market Value - {address}",
        )

        story = []
        story.extend(self._build_header(address, report_date or date.today()))
        story.extend(self._build_summary(result))
        story.extend(self._build_distribution(result))

        doc.build(story, onFirstPage=self._draw_footer)
        return buffer.getvalue()

    # =========================================================================
    # Sections
    # =========================================================================

    def _build_header(self, address: str, report_date: date) -> list:
        return [
            Paragraph("Fair Market Value", self.styles['ReportTitle']),
            Paragraph(escape(address), self.styles['ReportSubtitle']),
            Paragraph(report_date.strftime("%d %B %Y"), self.styles['ReportSubtitle']),
            Spacer(1, 6*mm),
        ]

    def _build_summary(self, result: FmvResult) -> list:
        elements = [Paragraph("Estimate", self.styles['SectionTitle'])]

        rows = [
            ["Fair Market Value", format_currency(result.fmv, self.currency)],
            ["Confidence", result.confidence.value.capitalize()],
            ["Guesses", str(result.guess_count)],
            ["WOZ value", format_currency(result.woz_value, self.currency)],
            ["Asking price", format_currency(result.asking_price, self.currency)],
            ["Divergence", format_percent(result.divergence, decimals=2, signed=True)],
        ]
        table = Table(rows, colWidths=[60*mm, 60*mm])
        table.setStyle(self._table_style())
        elements.append(table)
        elements.append(Spacer(1, 4*mm))

        elements.append(Paragraph(CONFIDENCE_NOTES[result.confidence], self.styles['BodyText']))

        if result.divergence is not None:
            if result.divergence > 0:
                reading = "The estimate is above the asking price: the property reads as underpriced."
                color = Palette.SUCCESS
            elif result.divergence < 0:
                reading = "The estimate is below the asking price: the property reads as overpriced."
                color = Palette.WARNING
            else:
                reading = "The estimate matches the asking price."
                color = Palette.SLATE
            style = ParagraphStyle('Divergence', parent=self.styles['BodyText'], textColor=color)
            elements.append(Paragraph(reading, style))

        return elements

    def _build_distribution(self, result: FmvResult) -> list:
        elements = [Paragraph("Spread of Guesses", self.styles['SectionTitle'])]

        dist = result.distribution
        if dist is None:
            elements.append(Paragraph("No guesses have been submitted.", self.styles['BodyText']))
            return elements

        header = ["Min", "P10", "P25", "Median", "P75", "P90", "Max"]
        values = [dist.min, dist.p10, dist.p25, dist.p50, dist.p75, dist.p90, dist.max]
        table = Table(
            [header, [format_currency(v, self.currency) for v in values]],
            colWidths=[24*mm] * len(header),
        )
        style = self._table_style()
        style.add('BACKGROUND', (0, 0), (-1, 0), Palette.ACCENT_LIGHT)
        style.add('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold')
        table.setStyle(style)
        elements.append(table)
        elements.append(Spacer(1, 3*mm))
        elements.append(Paragraph(
            "Spread covers every guess, including outliers excluded from the estimate.",
            self.styles['SmallText'],
        ))
        return elements

    def _table_style(self) -> TableStyle:
        return TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('TEXTCOLOR', (0, 0), (-1, -1), Palette.CHARCOAL),
            ('LINEBELOW', (0, 0), (-1, -1), 0.25, Palette.LIGHT_GRAY),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 4),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ])

    def _draw_footer(self, canvas_obj: canvas.Canvas, doc):
        """Quiet footer with the page number."""
        canvas_obj.saveState()
        canvas_obj.setFont('Helvetica', 7)
        canvas_obj.setFillColor(Palette.GRAY)
        canvas_obj.drawString(self.MARGIN, self.MARGIN - 10*mm, "CROWD FMV")
        canvas_obj.drawRightString(
            self.PAGE_WIDTH - self.MARGIN,
            self.MARGIN - 10*mm,
            f"{doc.page}",
        )
        canvas_obj.restoreState()
