"""
Reporting module for the Crowd FMV Engine.

Generates one-page Fair Market Value PDFs and a command-line summary.

Usage:
    from reporting import FmvReportGenerator

    generator = FmvReportGenerator()
    result = generator.generate(fmv_result, "Keizersgracht 1, Amsterdam", "reports/fmv.pdf")
"""

from .fmv_report import FmvReportGenerator, ReportSuccess

__all__ = [
    "FmvReportGenerator",
    "ReportSuccess",
]
