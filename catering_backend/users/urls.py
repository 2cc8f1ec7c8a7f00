# users/urls.py

from django.urls import path

from .views import LoginView, MeView

app_name = "users"

urlpatterns = [
    path("login/", LoginView.as_view(), name="login"),
    path("me/", MeView.as_view(), name="me"),
]
