from tefa.config.settings import WorkshopSettings, configure_logging

__all__ = ["WorkshopSettings", "configure_logging"]
