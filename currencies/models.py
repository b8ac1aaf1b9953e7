from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Currency(models.Model):
    code = models.CharField(max_length=3, unique=True)
    name = models.CharField(max_length=50)
    symbol = models.CharField(max_length=5, blank=True, default='')
    is_base = models.BooleanField(default=False)

    class Meta:
        ordering = ('code',)
        verbose_name_plural = 'currencies'

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.upper()
        if self.is_base:
            Currency.objects.exclude(pk=self.pk).update(is_base=False)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code


class ExchangeRate(models.Model):
    """One dated quote: ``amount_in_to = amount_in_from * rate``."""

    from_currency = models.ForeignKey(Currency, on_delete=models.CASCADE, related_name='rates_from')
    to_currency = models.ForeignKey(Currency, on_delete=models.CASCADE, related_name='rates_to')
    rate = models.DecimalField(max_digits=18, decimal_places=6)
    effective_date = models.DateField(default=timezone.localdate)

    class Meta:
        unique_together = ('from_currency', 'to_currency', 'effective_date')
        ordering = ['-effective_date', '-id']

    def clean(self):
        if self.from_currency_id and self.from_currency_id == self.to_currency_id:
            raise ValidationError('An exchange rate needs two different currencies.')
        if self.rate is not None and Decimal(str(self.rate)) <= 0:
            raise ValidationError({'rate': 'Exchange rate must be positive.'})

    def __str__(self):
        return f'{self.from_currency} -> {self.to_currency} @ {self.rate}'
