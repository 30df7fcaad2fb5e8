"""URL configuration for files app."""

from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('', views.list_files_view, name='list'),
    path('upload', views.upload_view, name='upload'),
    path('usage', views.usage_view, name='usage'),
    path('<int:file_id>/rename', views.rename_view, name='rename'),
    path('<int:file_id>/share', views.share_view, name='share'),
    path('<int:file_id>/delete', views.delete_view, name='delete'),
]
