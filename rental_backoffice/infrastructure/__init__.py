# Infrastructure Layer
# ====================
# Contains all external integrations:
# - messaging/: per-channel message providers (simulated for now)
# - persistence/: SQLite record storage (the data-access layer)
# - importer/: Excel spreadsheet reading via pandas
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
