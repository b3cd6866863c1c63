from app.cards.service import RedemptionService

__all__ = ["RedemptionService"]
