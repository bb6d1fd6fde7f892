from django.urls import path
from .views import (
    article_list_create, article_detail, article_book_stock, article_audit,
    article_movements, article_image_upload, scan_lookup, articles_copy,
    article_categories, category_rename, location_suggestion, audit_recommendations,
    article_analyze,
)

urlpatterns = [
    path('articles/', article_list_create, name='article-list-create'),
    path('articles/copy/', articles_copy, name='article-copy'),
    path('articles/analyze/', article_analyze, name='article-analyze'),
    path('articles/categories/', article_categories, name='article-categories'),
    path('articles/categories/rename/', category_rename, name='article-category-rename'),
    path('articles/suggest-location/', location_suggestion, name='article-suggest-location'),
    path('articles/<int:pk>/', article_detail, name='article-detail'),
    path('articles/<int:pk>/book/', article_book_stock, name='article-book-stock'),
    path('articles/<int:pk>/audit/', article_audit, name='article-audit'),
    path('articles/<int:pk>/movements/', article_movements, name='article-movements'),
    path('articles/<int:pk>/image/', article_image_upload, name='article-image-upload'),
    path('scan/', scan_lookup, name='scan-lookup'),
    path('stock-audit/recommendations/', audit_recommendations, name='audit-recommendations'),
]
