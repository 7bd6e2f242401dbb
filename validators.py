# SPDX-License-Identifier: AGPL-3.0-only

"""
Input validation schemas using Marshmallow for API endpoints.
"""
from typing import Dict, List, Optional, Sequence

from marshmallow import Schema, fields, validate, EXCLUDE


class AnalyzeRequestSchema(Schema):
    """Validation schema for the text fields of an analysis upload."""

    class Meta:
        unknown = EXCLUDE

    instructions = fields.Str(
        required=True,
        validate=validate.Length(min=1, error='Instructions are required'),
        error_messages={
            'required': 'Instructions are required',
            'null': 'Instructions are required',
            'invalid': 'Instructions must be a string'
        }
    )
    task_type = fields.Str(
        required=True,
        data_key='taskType',
        validate=validate.Length(min=1, error='Task type is required'),
        error_messages={
            'required': 'Task type is required',
            'null': 'Task type is required',
            'invalid': 'Task type must be a string'
        }
    )


class ExportRequestSchema(Schema):
    """Validation schema for PDF and Word export requests."""

    class Meta:
        unknown = EXCLUDE

    markdown = fields.Str(
        required=True,
        validate=validate.Length(min=1, error='Markdown content is required'),
        error_messages={
            'required': 'Markdown content is required',
            'invalid': 'Markdown content must be a string'
        }
    )
    file_name = fields.Str(
        required=True,
        data_key='fileName',
        validate=[
            validate.Length(min=1, error='File name is required'),
            validate.Length(max=255, error='File name must be at most 255 characters')
        ],
        error_messages={
            'required': 'File name is required',
            'invalid': 'File name must be a string'
        }
    )
    task_type = fields.Str(
        required=True,
        data_key='taskType',
        validate=validate.Length(min=1, error='Task type is required'),
        error_messages={
            'required': 'Task type is required',
            'invalid': 'Task type must be a string'
        }
    )


class PreviewRequestSchema(Schema):
    """Validation schema for Markdown preview requests."""

    class Meta:
        unknown = EXCLUDE

    markdown = fields.Str(
        required=True,
        error_messages={
            'required': 'Markdown content is required',
            'invalid': 'Markdown content must be a string'
        }
    )


def first_error(errors: Dict[str, List[str]], order: Sequence[str]) -> Optional[str]:
    """Pick the first validation message, following the field order given."""
    for key in order:
        messages = errors.get(key)
        if messages:
            return messages[0] if isinstance(messages, list) else str(messages)
    for messages in errors.values():
        if messages:
            return messages[0] if isinstance(messages, list) else str(messages)
    return None
