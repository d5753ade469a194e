from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'purchases'

router = SimpleRouter()
router.register(r'', views.PurchaseViewSet, basename='purchase')

urlpatterns = [
    # POST   /api/purchases/               - Buy a course
    # GET    /api/purchases/transactions/  - Transaction history
    # GET    /api/purchases/ledger/        - Balance reconciliation
    path('', include(router.urls)),
]
