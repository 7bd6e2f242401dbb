# SPDX-License-Identifier: AGPL-3.0-only

"""
The in-memory result of an export, ready to be sent as a download.
"""
from dataclasses import dataclass
from datetime import date


@dataclass
class ExportArtifact:
    filename: str
    mimetype: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def display_date(day: date) -> str:
    """US-style short date, as printed in export headers (e.g. 10/19/2026)."""
    return f"{day.month}/{day.day}/{day.year}"
