"""URL routes of the mobile uploader API."""

from django.urls import path

from server.apps.uploader import views

app_name = 'uploader'

urlpatterns = [
    path('verify', views.verify, name='verify'),
    path('libraries', views.libraries, name='libraries'),
    path('folders', views.folders, name='folders'),
    path('create-folder', views.create_folder, name='create_folder'),
    path('upload', views.upload, name='upload'),
    path('user-limits', views.user_limits, name='user_limits'),
]
