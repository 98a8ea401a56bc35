from services.scheduling.api.calendar import router as calendar_router

__all__ = ["calendar_router"]
