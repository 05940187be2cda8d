# Application Layer
# =================
# Use cases built on the domain and infrastructure layers:
# - backup_service.py: snapshot export/restore, CSV transfer
# - dispatcher.py: single-message delivery + communication log
# - bulk_dispatch.py: paced sequential delivery to many recipients

from .backup_service import BackupService, DataSource
from .dispatcher import ChannelDispatcher
from .bulk_dispatch import BulkDispatcher, recipients_from_customers

__all__ = ["BackupService", "DataSource", "ChannelDispatcher", "BulkDispatcher", "recipients_from_customers"]
