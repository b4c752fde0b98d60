from django.urls import path
from . import views

urlpatterns = [
    path('cashout/', views.cash_out_external, name='settlement-cashout'),
    path('recent/', views.recent, name='settlement-recent'),
]
