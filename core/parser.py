# =============================================================================
# core/parser.py - Delimited record parser
# =============================================================================

import logging
import re
from types import MappingProxyType
from typing import List

from core.models import RawUserRecord


# Commas followed by an even number of double quotes are outside a quoted field
FIELD_SPLIT_PATTERN = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')
LINE_SPLIT_PATTERN = re.compile(r'\r\n|\n')


class DelimitedRecordParser:
    """Turns raw CSV text into header-keyed user records"""

    # Rows with fewer resolved fields are treated as ragged export output
    MIN_FIELDS = 5

    def __init__(self, min_fields: int = MIN_FIELDS):
        self.min_fields = min_fields
        self.logger = logging.getLogger(self.__class__.__name__)

    def parse(self, text: str) -> List[RawUserRecord]:
        """Parse CSV text into an ordered list of read-only records.

        The first line is the header. Blank lines are skipped and rows with
        fewer than ``min_fields`` values are dropped without raising.
        """
        if not text:
            return []

        lines = LINE_SPLIT_PATTERN.split(text)
        headers = self.parse_header(lines[0])

        records: List[RawUserRecord] = []
        dropped = 0

        for row_num, raw_line in enumerate(lines[1:], start=2):
            line = raw_line.strip()
            if not line:
                continue

            values = self.split_fields(line)
            if len(values) < self.min_fields:
                dropped += 1
                self.logger.debug(f"Skipping row {row_num} - insufficient fields (got {len(values)})")
                continue

            record = {}
            for index, header in enumerate(headers):
                record[header] = values[index] if index < len(values) else ''
            records.append(MappingProxyType(record))

        if dropped:
            self.logger.info(f"Dropped {dropped} malformed row(s)")
        self.logger.debug(f"Parsed {len(records)} records with headers {headers[:10]}")
        return records

    @staticmethod
    def parse_header(line: str) -> List[str]:
        """Comma-split header tokens, BOM removed"""
        line = line.lstrip('\ufeff')
        return [header.strip() for header in line.split(',')]

    @staticmethod
    def split_fields(line: str) -> List[str]:
        """Split one data line on unquoted commas and unwrap quoted values"""
        values = []
        for token in FIELD_SPLIT_PATTERN.split(line):
            value = token.strip()
            if value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            values.append(value)
        return values
