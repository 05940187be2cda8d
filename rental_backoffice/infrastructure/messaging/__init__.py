from .messaging_provider import (
    MessageProvider,
    SimulatedProvider,
    SimulatedSmsProvider,
    SimulatedWhatsAppProvider,
    SimulatedEmailProvider,
    default_providers,
)

__all__ = [
    "MessageProvider",
    "SimulatedProvider",
    "SimulatedSmsProvider",
    "SimulatedWhatsAppProvider",
    "SimulatedEmailProvider",
    "default_providers",
]
