from django.contrib import admin

from .models import Product, Combo, ComboItem
from .services import ComboPricingService, PersistedCombo


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'sku', 'base_price', 'base_currency', 'stock', 'min_stock_alert', 'is_active')
    search_fields = ('name', 'sku')
    list_filter = ('base_currency', 'is_active')
    readonly_fields = ('created_at', 'updated_at')
    fields = (
        ('name', 'sku'),
        ('base_price', 'base_currency', 'profit_margin'),
        ('stock', 'min_stock_alert'),
        'is_active',
        ('created_at', 'updated_at'),
    )


class ComboItemInline(admin.TabularInline):
    model = ComboItem
    extra = 1
    autocomplete_fields = ['product']


@admin.register(Combo)
class ComboAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'profit_margin', 'is_active', '_final_price', '_effectively_active')
    list_filter = ('is_active',)
    search_fields = ('name', 'code')
    inlines = [ComboItemInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('items')

    def get_changelist_instance(self, request):
        changelist = super().get_changelist_instance(request)
        service = ComboPricingService.from_database()
        for combo in changelist.result_list:
            combo.pricing_display = service.display(PersistedCombo.from_model(combo))
        return changelist

    def _display(self, obj):
        display = getattr(obj, 'pricing_display', None)
        if display is None:
            display = ComboPricingService.from_database().display(PersistedCombo.from_model(obj))
            obj.pricing_display = display
        return display

    def _final_price(self, obj):
        return self._display(obj).final_price_formatted

    _final_price.short_description = 'Final Price'

    def _effectively_active(self, obj):
        return self._display(obj).is_effectively_active

    _effectively_active.short_description = 'Sellable'
    _effectively_active.boolean = True
