from decimal import Decimal

from django.db import models
from django.utils.text import slugify
from django.utils import timezone

from .services.margins import MARGIN_DECIMAL_PLACES, MARGIN_MAX_DIGITS


def _generate_unique_slug(instance, value, slug_field_name='code', max_length=80):
    base_slug = slugify(value)[:max_length] or 'combo'
    slug = base_slug
    model_class = instance.__class__
    counter = 1
    existing_qs = model_class.objects.filter(**{slug_field_name: slug})
    if instance.pk:
        existing_qs = existing_qs.exclude(pk=instance.pk)
    while existing_qs.exists():
        slug = f'{base_slug}-{counter}'[:max_length]
        counter += 1
        existing_qs = model_class.objects.filter(**{slug_field_name: slug})
        if instance.pk:
            existing_qs = existing_qs.exclude(pk=instance.pk)
    return slug


class Product(models.Model):
    name = models.CharField(max_length=150)
    sku = models.CharField(max_length=50, unique=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    base_currency = models.ForeignKey(
        'currencies.Currency', on_delete=models.SET_NULL, null=True, blank=True, related_name='products'
    )
    profit_margin = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    min_stock_alert = models.PositiveIntegerField(default=10)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return f'{self.name} ({self.sku})'

    @property
    def final_price(self):
        if self.profit_margin is None:
            return None
        base = Decimal(str(self.base_price or Decimal('0.00')))
        return base * (Decimal('1') + Decimal(str(self.profit_margin)) / Decimal('100'))

    @property
    def is_low_stock(self):
        return 0 < self.stock <= self.min_stock_alert


class Combo(models.Model):
    name = models.CharField(max_length=120, unique=True)
    code = models.SlugField(max_length=80, unique=True, blank=True)
    description = models.TextField(blank=True)
    profit_margin = models.DecimalField(
        max_digits=MARGIN_MAX_DIGITS, decimal_places=MARGIN_DECIMAL_PLACES, null=True, blank=True
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.code and self.name:
            self.code = _generate_unique_slug(self, self.name)
        super().save(*args, **kwargs)


class ComboItem(models.Model):
    combo = models.ForeignKey(Combo, related_name='items', on_delete=models.CASCADE)
    # Deleting a product leaves a dangling line that pricing skips.
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='combo_items')
    quantity = models.PositiveIntegerField(default=1)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ('position', 'id')
        unique_together = (('combo', 'product'),)

    def __str__(self):
        return f"{self.product} x{self.quantity}"
