import logging

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet

from currencies.services import quantize

from .models import Combo
from .serializers import ComboActiveSerializer, ComboDraftInputSerializer, ComboSerializer
from .services import ComboPricingService, PersistedCombo
from .services.repository import DjangoComboRepository

logger = logging.getLogger(__name__)


def _error_response(exc: ValidationError, http_status=status.HTTP_400_BAD_REQUEST):
    return Response(
        {'detail': exc.messages, 'code': getattr(exc, 'code', None)},
        status=http_status,
    )


class ComboViewSet(ModelViewSet):
    queryset = Combo.objects.prefetch_related('items__product').order_by('name')
    serializer_class = ComboSerializer
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    def get_pricing_service(self):
        if not hasattr(self, '_pricing_service'):
            self._pricing_service = ComboPricingService.from_database()
        return self._pricing_service

    def get_repository(self):
        return DjangoComboRepository()

    def _display_currency(self):
        return self.request.query_params.get('currency') or None

    def _displays(self, combos):
        service = self.get_pricing_service()
        currency_id = self._display_currency()
        return {
            combo.pk: service.display(PersistedCombo.from_model(combo), currency_id)
            for combo in combos
        }

    def _combo_response(self, combo, http_status=status.HTTP_200_OK, advisories=()):
        combo = self.get_queryset().get(pk=combo.pk)
        data = ComboSerializer(combo, context={'request': self.request, 'displays': self._displays([combo])}).data
        data['advisories'] = [advisory.as_dict() for advisory in advisories]
        return Response(data, status=http_status)

    def list(self, request, *args, **kwargs):
        combos = list(self.filter_queryset(self.get_queryset()))
        serializer = ComboSerializer(combos, many=True, context={'request': request, 'displays': self._displays(combos)})
        return Response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        combo = self.get_object()
        return self._combo_response(combo)

    def _save(self, request, combo_id=None):
        payload = ComboDraftInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        service = self.get_pricing_service()
        try:
            draft = service.build_draft(
                items=data['items'],
                margin_mode=data['margin_mode'],
                margin_value=data['margin_value'],
                name=data['name'],
                description=data['description'],
                combo_id=combo_id,
            )
            result = service.save(draft, self.get_repository(), confirm_zero_margin=data['confirm_zero_margin'])
        except ValidationError as exc:
            logger.warning('Combo save rejected: %s', exc.messages)
            return _error_response(exc)

        if result.confirmation_required:
            return Response(
                {
                    'detail': [advisory.message for advisory in result.advisories],
                    'code': 'zero_margin_confirmation_required',
                    'advisories': [advisory.as_dict() for advisory in result.advisories],
                },
                status=status.HTTP_409_CONFLICT,
            )
        combo = Combo.objects.get(pk=result.combo.id)
        http_status = status.HTTP_200_OK if combo_id else status.HTTP_201_CREATED
        return self._combo_response(combo, http_status, result.advisories)

    def create(self, request, *args, **kwargs):
        return self._save(request)

    def update(self, request, *args, **kwargs):
        combo = self.get_object()
        return self._save(request, combo_id=combo.pk)

    def destroy(self, request, *args, **kwargs):
        combo = self.get_object()
        self.get_pricing_service().set_active(self.get_repository(), combo.pk, False)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def preview(self, request):
        payload = ComboDraftInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        try:
            draft = self.get_pricing_service().build_draft(
                items=data['items'],
                margin_mode=data['margin_mode'],
                margin_value=data['margin_value'],
            )
        except ValidationError as exc:
            return _error_response(exc)
        return Response({
            'base_price': quantize(draft.base_price),
            'margin_mode': draft.margin.mode,
            **draft.figures.as_dict(),
            'advisories': [advisory.as_dict() for advisory in draft.advisories],
        })

    @action(detail=True, methods=['post'], url_path='set-active')
    def set_active(self, request, pk=None):
        combo = self.get_object()
        payload = ComboActiveSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        self.get_pricing_service().set_active(self.get_repository(), combo.pk, payload.validated_data['is_active'])
        return self._combo_response(combo)
