from rest_framework.routers import DefaultRouter

from .api import ComboViewSet

app_name = 'inventory'


router = DefaultRouter()
router.register('api/combos', ComboViewSet, basename='combo')

urlpatterns = router.urls
