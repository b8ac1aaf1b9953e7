from django.core.exceptions import ValidationError


class ComboPricingError(ValidationError):
    """Domain-specific error for combo pricing workflows."""


class NegativeMarginError(ComboPricingError):
    """A margin input below zero; the field update is rejected."""

    def __init__(self, field, value):
        super().__init__(f'{field} cannot be negative (got {value}).', code='negative_margin')
        self.field = field
        self.value = value


class ComboDraftError(ComboPricingError):
    pass
