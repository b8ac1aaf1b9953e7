from rest_framework import serializers

from .models import Combo, ComboItem
from .services.margins import MODE_CHOICES, PERCENTAGE


class ComboItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)
    product_sku = serializers.CharField(source='product.sku', read_only=True, default=None)
    product_base_price = serializers.DecimalField(
        source='product.base_price', max_digits=12, decimal_places=2, read_only=True, default=None
    )

    class Meta:
        model = ComboItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'product_base_price', 'quantity']


class ComboSerializer(serializers.ModelSerializer):
    items = ComboItemSerializer(many=True, read_only=True)
    pricing = serializers.SerializerMethodField()

    class Meta:
        model = Combo
        fields = [
            'id',
            'name',
            'code',
            'description',
            'is_active',
            'profit_margin',
            'items',
            'pricing',
        ]

    def get_pricing(self, obj):
        displays = self.context.get('displays') or {}
        display = displays.get(obj.pk)
        return display.as_dict() if display is not None else None


class ComboLineInputSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class ComboDraftInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    items = ComboLineInputSerializer(many=True)
    margin_mode = serializers.ChoiceField(choices=MODE_CHOICES, default=PERCENTAGE)
    margin_value = serializers.DecimalField(max_digits=14, decimal_places=4, required=False, allow_null=True, default=None)
    confirm_zero_margin = serializers.BooleanField(default=False)


class ComboActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()
