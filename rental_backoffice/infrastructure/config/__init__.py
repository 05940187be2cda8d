from .settings import Settings, BackupSettings, MessagingSettings, get_settings

__all__ = ["Settings", "BackupSettings", "MessagingSettings", "get_settings"]
