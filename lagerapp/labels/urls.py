from django.urls import path
from .views import (
    article_label_png, article_labels_print, location_label_list,
    location_labels_print, commission_labels_print,
)

urlpatterns = [
    path('labels/articles/<int:pk>/png/', article_label_png, name='label-article-png'),
    path('labels/articles/print/', article_labels_print, name='label-articles-print'),
    path('labels/locations/', location_label_list, name='label-locations'),
    path('labels/locations/print/', location_labels_print, name='label-locations-print'),
    path('labels/commissions/print/', commission_labels_print, name='label-commissions-print'),
]
