# cash_register/urls.py

from django.urls import path

from cash_register.views.register import (
    ClosePreviewView,
    CloseRegisterView,
    CurrentRegisterView,
    OpenRegisterView,
    RegisterHistoryView,
)

app_name = "cash_register"

urlpatterns = [
    path("current/", CurrentRegisterView.as_view(), name="current"),
    path("open/", OpenRegisterView.as_view(), name="open"),
    path("history/", RegisterHistoryView.as_view(), name="history"),
    path("<uuid:session_id>/close-preview/", ClosePreviewView.as_view(), name="close-preview"),
    path("<uuid:session_id>/close/", CloseRegisterView.as_view(), name="close"),
]
