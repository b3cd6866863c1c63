from __future__ import annotations

from app.cards.types import CardVariant, RedemptionStatus

# Declared rarest first; order only fixes tie-breaks, not fairness.
VARIANT_DRAW_TABLE: tuple[tuple[CardVariant, int], ...] = (
    (CardVariant.RELIQUIA, 3),
    (CardVariant.HOLOGRAFICA, 7),
    (CardVariant.EDICAO_DIAMANTE, 12),
    (CardVariant.COMUM, 78),
)
VARIANT_DRAW_SCALE = 100
FALLBACK_VARIANT = CardVariant.COMUM

REDEMPTION_MESSAGES: dict[RedemptionStatus, str] = {
    RedemptionStatus.SUCCESS: "Card resgatado com sucesso!",
    RedemptionStatus.INVALID_FORMAT: "O código deve estar no formato AAA-BBB.",
    RedemptionStatus.CODE_NOT_FOUND: "Código não encontrado. Verifique e tente novamente.",
    RedemptionStatus.EXPIRED: "O prazo de resgate para este card expirou.",
    RedemptionStatus.ALREADY_REDEEMED: "Você já resgatou este card!",
    RedemptionStatus.STORE_UNAVAILABLE: "Erro ao resgatar. Tente novamente.",
}
