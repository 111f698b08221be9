# =============================================================================
# utils/csv_utils.py - CSV utilities
# =============================================================================

import csv
import io
import logging
from datetime import date
from typing import List, Optional, Sequence

from core.models import INPUT_COLUMNS, ProcessedUser


EXPORT_COLUMNS = [
    'UserName', 'SamAccountName', 'Department', 'Enabled',
    'RiskLevel', 'TotalRiskScore', 'PrivilegeScore', 'HygieneScore',
    'Issues', 'Recommendations', 'LastLogonDate', 'MFAEnabled',
]

TEMPLATE_FILENAME = 'adhuntx_template.csv'
LIST_SEPARATOR = '; '


def report_filename(day: Optional[date] = None) -> str:
    """Date-stamped export filename"""
    day = day or date.today()
    return f"adhuntx_report_{day.isoformat()}.csv"


class CSVHandler:
    """Utilities for reading and writing CSV files"""

    ENCODINGS = ('utf-8-sig', 'utf-8', 'latin-1')

    @staticmethod
    def read_text(file_path: str) -> str:
        """Read a text file, trying UTF-8 with BOM first"""
        logger = logging.getLogger(__name__)

        last_error: Optional[UnicodeDecodeError] = None
        for encoding in CSVHandler.ENCODINGS:
            try:
                with open(file_path, 'r', newline='', encoding=encoding) as file:
                    text = file.read()
                logger.info(f"Read {len(text)} characters from {file_path} ({encoding})")
                return text
            except FileNotFoundError:
                logger.error(f"Input file {file_path} not found")
                raise
            except UnicodeDecodeError as e:
                last_error = e
                continue

        logger.error(f"Could not decode {file_path} with any supported encoding")
        raise last_error

    @staticmethod
    def decode_bytes(data: bytes) -> str:
        """Decode uploaded bytes with the same encoding fallbacks"""
        for encoding in CSVHandler.ENCODINGS[:-1]:
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue
        return data.decode(CSVHandler.ENCODINGS[-1])

    @staticmethod
    def export_rows(users: Sequence[ProcessedUser]) -> List[list]:
        """Report rows in EXPORT_COLUMNS order"""
        rows = []
        for processed in users:
            user, risk = processed.user, processed.risk
            rows.append([
                user.user_name,
                user.sam_account_name,
                user.department,
                user.enabled,
                risk.risk_level.value,
                risk.total_risk_score,
                risk.privilege_score,
                risk.password_hygiene_score,
                LIST_SEPARATOR.join(risk.issues),
                LIST_SEPARATOR.join(risk.recommendations),
                user.last_logon_date,
                'true' if user.has_mfa else 'false',
            ])
        return rows

    @staticmethod
    def export_users(users: Sequence[ProcessedUser]) -> str:
        """Render the risk report CSV; empty string when there is nothing to export"""
        logger = logging.getLogger(__name__)

        if not users:
            logger.warning("No data to export")
            return ''

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')
        writer.writerow(EXPORT_COLUMNS)
        writer.writerows(CSVHandler.export_rows(users))

        logger.info(f"Exported {len(users)} users")
        return buffer.getvalue()

    @staticmethod
    def template_csv() -> str:
        """Header-only CSV listing the expected input columns"""
        return ','.join(INPUT_COLUMNS)

    @staticmethod
    def write_text(content: str, output_path: str) -> None:
        """Write CSV text to a file"""
        logger = logging.getLogger(__name__)

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                file.write(content)

            logger.info(f"Successfully wrote {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise
