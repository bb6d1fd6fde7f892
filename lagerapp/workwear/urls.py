from django.urls import path
from . import views

urlpatterns = [
    path('workwear/templates/', views.template_list_create, name='workwear-template-list-create'),
    path('workwear/templates/<int:pk>/', views.template_detail, name='workwear-template-detail'),
    path('workwear/budget/', views.my_budget, name='workwear-my-budget'),
    path('workwear/checkout/', views.workwear_checkout, name='workwear-checkout'),
    path('workwear/orders/', views.my_orders, name='workwear-my-orders'),
    path('workwear/orders/<int:pk>/', views.order_delete, name='workwear-order-delete'),
    path('workwear/sizes/', views.my_sizes, name='workwear-my-sizes'),
    path('workwear/settings/', views.workwear_settings, name='workwear-settings'),
    path('workwear/admin/orders/', views.admin_order_list, name='workwear-admin-orders'),
    path('workwear/admin/orders/<int:pk>/status/', views.admin_order_status, name='workwear-admin-order-status'),
    path('workwear/admin/order-items/<int:pk>/', views.order_item_delete, name='workwear-admin-item-delete'),
    path('workwear/admin/budgets/', views.admin_budgets, name='workwear-admin-budgets'),
    path('workwear/admin/users/<int:pk>/role/', views.admin_user_role, name='workwear-admin-user-role'),
]
