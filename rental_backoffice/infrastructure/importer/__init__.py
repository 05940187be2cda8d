from .excel_parser import SpreadsheetParser, SPREADSHEET_EXTENSIONS

__all__ = ["SpreadsheetParser", "SPREADSHEET_EXTENSIONS"]
