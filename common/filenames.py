# SPDX-License-Identifier: AGPL-3.0-only

"""
Naming helpers shared by the PDF and Word exporters.
"""

SUMMARIZE = "summarize"


def base_name(file_name: str) -> str:
    """Display name with the first `.pdf` removed."""
    return (file_name or "").replace(".pdf", "", 1)


def task_suffix(task_type: str) -> str:
    return "_summarized" if task_type == SUMMARIZE else "_explained"


def output_filename(file_name: str, task_type: str, extension: str) -> str:
    """e.g. ("notes.pdf", "summarize", "docx") -> "notes_summarized.docx"."""
    return f"{base_name(file_name)}{task_suffix(task_type)}.{extension}"


def document_title(file_name: str, task_type: str) -> str:
    label = "Summary" if task_type == SUMMARIZE else "Explanation"
    return f"{label} of: {base_name(file_name)}"
