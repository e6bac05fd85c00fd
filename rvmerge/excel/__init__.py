from .reader import SheetData, Workbook, WorkbookReadError, read_excel_file
from .writer import WorkbookWriter

__all__ = ["SheetData", "Workbook", "WorkbookReadError", "read_excel_file", "WorkbookWriter"]
