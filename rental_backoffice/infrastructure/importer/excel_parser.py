"""
Spreadsheet Parser - Excel Import
==================================

Reads .xlsx / .xls sheets into the same string-valued records the CSV
codec produces, so an Excel export from the office can be imported
directly. CSV files go through domain.csv_codec instead.
"""

import io
import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ...domain.models import Record
from ...errors import EmptyFile, MalformedInput

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = ['.xlsx', '.xls']


class SpreadsheetParser:
    """
    Excel parser producing schema-free records.

    Usage:
        parser = SpreadsheetParser()
        records = parser.parse("customers.xlsx")
        # Returns: [{"name": "Rajesh Kumar", "phone": "+91 9876543210"}, ...]
    """

    def parse(self, source: Union[str, Path, bytes], sheet_name: Optional[str] = None) -> List[Record]:
        """
        Parse an Excel sheet.

        Args:
            source: File path or raw file content
            sheet_name: Optional sheet name (defaults to the first sheet)

        Returns:
            List of records with string values

        Raises:
            MalformedInput: the content is not a readable spreadsheet
            EmptyFile: the sheet has no data rows
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {source}")
            if path.suffix.lower() not in SPREADSHEET_EXTENSIONS:
                raise MalformedInput(f"Unsupported file format: {path.suffix}. Use .xlsx or .xls")
            handle = path
        else:
            handle = io.BytesIO(source)

        try:
            # dtype=str keeps phone numbers and ids exactly as typed
            df = pd.read_excel(handle, sheet_name=sheet_name or 0, dtype=str)
        except Exception as e:
            logger.error(f"Failed to read spreadsheet: {e}")
            raise MalformedInput(f"Could not read spreadsheet: {e}") from e

        df = df.dropna(how="all")
        if df.empty:
            raise EmptyFile("Spreadsheet must contain at least a header row and one data row")

        df.columns = [str(col).strip() for col in df.columns]
        df = df.fillna("")

        records = []
        for _, row in df.iterrows():
            records.append({col: str(row[col]).strip() for col in df.columns})

        logger.info(f"Parsed {len(records)} rows from spreadsheet")
        return records

    def get_sheet_names(self, file_path: str) -> List[str]:
        """Get list of sheet names from Excel file."""
        path = Path(file_path)
        if path.suffix.lower() in SPREADSHEET_EXTENSIONS:
            xl = pd.ExcelFile(file_path)
            return xl.sheet_names
        return []
