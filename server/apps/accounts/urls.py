"""URL configuration for accounts app."""

from django.urls import path

from server.apps.accounts import views

app_name = 'accounts'

urlpatterns = [
    path('sign-up', views.sign_up_view, name='sign-up'),
    path('sign-in', views.sign_in_view, name='sign-in'),
    path('otp', views.request_otp_view, name='otp'),
    path('verify', views.verify_otp_view, name='verify'),
    path('sign-out', views.sign_out_view, name='sign-out'),
    path('me', views.me_view, name='me'),
]
