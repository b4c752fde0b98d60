from django.urls import path
from . import views

urlpatterns = [
    path('start/', views.start_session, name='accrual-start'),
    path('stop/', views.stop_session, name='accrual-stop'),
    path('tick/', views.tick, name='accrual-tick'),
    path('upgrade/', views.purchase_upgrade, name='accrual-upgrade'),
    path('assets/', views.sync_assets, name='accrual-assets'),
]
