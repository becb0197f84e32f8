from django.urls import include, path

urlpatterns = [
    path('', include('minimiser.urls')),
]
