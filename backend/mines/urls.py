from django.urls import path
from . import views

urlpatterns = [
    path('start/', views.start_session, name='mines-start'),
    path('reveal/', views.reveal_cell, name='mines-reveal'),
    path('cashout/', views.cash_out, name='mines-cashout'),
    path('session/<uuid:session_id>/', views.session_state, name='mines-state'),
]
