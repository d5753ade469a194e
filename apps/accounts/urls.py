from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('logout/', views.logout, name='logout'),
    path('token/refresh/', views.token_refresh, name='token-refresh'),

    # Customer profile
    path('me/', views.get_current_customer, name='me'),
    path('profile/', views.update_customer_profile, name='update-profile'),
    path('balance/top-up/', views.top_up, name='top-up'),
]
