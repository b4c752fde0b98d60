from django.urls import path, include


urlpatterns = [
    path('api/ledger/', include('ledger.urls')),
    path('api/accrual/', include('accrual.urls')),
    path('api/mines/', include('mines.urls')),
    path('api/pool/', include('pool.urls')),
    path('api/settlement/', include('settlement.urls')),
]
