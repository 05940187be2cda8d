# Vats Rental - Back-Office Services
# ===================================
# Backup/restore, CSV/Excel transfer and customer messaging for a vehicle
# rental business, using Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI dashboard and CLI scripts
# - Application:    Backup service, channel dispatcher, bulk dispatcher
# - Domain:         Models, CSV codec, template engine (no external dependencies)
# - Infrastructure: SQLite storage, messaging providers, Excel import, settings
#
# Infrastructure pieces can be swapped (e.g. a real SMS gateway instead of
# the simulated provider) without touching the domain or application layers.
