from django.urls import path
from . import views

urlpatterns = [
    path('<str:account_key>/', views.account_balance, name='ledger-balance'),
]
