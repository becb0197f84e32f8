from django.urls import path
from . import views

urlpatterns = [
    # Prune and minimise a Moore or Mealy automaton
    path('api/minimise/', views.minimise_automaton, name='minimise'),
    path('api/remove-unreachable/', views.remove_unreachable, name='remove_unreachable'),

    # Mealy <-> Moore conversion
    path('api/convert/', views.convert_automaton, name='convert'),

    # Property checking and simulation
    path('api/check-properties/', views.check_properties, name='check_properties'),
    path('api/simulate/', views.simulate, name='simulate'),
]
