"""Reports module - History of finalized deployment reports."""

from .store import ReportNotFoundError, ReportStore

__all__ = [
	"ReportStore",
	"ReportNotFoundError",
]
