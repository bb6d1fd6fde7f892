from django.urls import path
from .views import (
    order_proposals, order_proposal_csv, order_from_proposal, commission_number_preview,
    order_list, order_detail, order_receive, order_csv_download, order_event_list,
    orders_cleanup, manual_order_analyze, manual_order_create,
    import_candidate_list, import_candidate_create,
)

urlpatterns = [
    # Proposals
    path('orders/proposals/', order_proposals, name='order-proposals'),
    path('orders/proposals/csv/', order_proposal_csv, name='order-proposal-csv'),
    path('orders/proposals/order/', order_from_proposal, name='order-from-proposal'),
    path('orders/commission-number/', commission_number_preview, name='order-commission-number'),

    # Manual orders
    path('orders/manual/analyze/', manual_order_analyze, name='order-manual-analyze'),
    path('orders/manual/', manual_order_create, name='order-manual-create'),

    # Import of custom lines
    path('orders/import-candidates/', import_candidate_list, name='order-import-candidates'),
    path('orders/import-candidates/<int:pk>/import/', import_candidate_create, name='order-import-candidate-create'),

    # Orders
    path('orders/', order_list, name='order-list'),
    path('orders/events/', order_event_list, name='order-event-list'),
    path('orders/cleanup/', orders_cleanup, name='order-cleanup'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/receive/', order_receive, name='order-receive'),
    path('orders/<int:pk>/csv/', order_csv_download, name='order-csv'),
    path('orders/<int:pk>/events/', order_event_list, name='order-events'),
]
