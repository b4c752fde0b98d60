from django.urls import path
from . import views

urlpatterns = [
    path('contribute/', views.contribute, name='pool-contribute'),
    path('status/', views.pool_status, name='pool-status'),
    path('distribute/', views.distribute, name='pool-distribute'),
    path('claim/', views.claim, name='pool-claim'),
    path('redeem/', views.redeem, name='pool-redeem'),
]
