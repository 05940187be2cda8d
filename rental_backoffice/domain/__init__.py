# Domain Layer
# ============
# Pure logic with no external dependencies:
# - models.py: snapshots, templates, dispatch records
# - csv_codec.py: record <-> CSV text
# - templates.py: placeholder rendering and the template registry

from .models import (
    BackupMetadata,
    BulkDispatchResult,
    Channel,
    DispatchRecord,
    DispatchStatus,
    ImportResult,
    MessageTemplate,
    Recipient,
    Record,
    RestoreReport,
    Snapshot,
    REQUIRED_ENTITY_KINDS,
    OPTIONAL_ENTITY_KINDS,
)
from .templates import TemplateRegistry, render, missing_variables
from . import csv_codec
