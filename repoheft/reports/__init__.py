"""Report generation"""

from .report_generator import ReportGenerator, aggregate

__all__ = ['ReportGenerator', 'aggregate']
