"""Report rendering for Plugintester."""

from .summary import render_comparison, render_report, write_markdown_report

__all__ = ["render_comparison", "render_report", "write_markdown_report"]
