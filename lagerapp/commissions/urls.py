from django.urls import path
from . import views

urlpatterns = [
    path('commissions/', views.commission_list_create, name='commission-list-create'),
    path('commissions/counts/', views.commission_tab_counts, name='commission-tab-counts'),
    path('commissions/events/', views.commission_events, name='commission-event-list'),
    path('commissions/cleanup-scan/', views.commission_cleanup_scan, name='commission-cleanup-scan'),
    path('commissions/print-queue/', views.commission_print_queue, name='commission-print-queue'),
    path('commissions/print-queue/printed/', views.commission_mark_printed, name='commission-mark-printed'),
    path('commissions/print-history/', views.commission_print_history, name='commission-print-history'),
    path('commissions/trash/purge/', views.commission_purge_trash, name='commission-purge-trash'),
    path('commissions/<int:pk>/', views.commission_detail, name='commission-detail'),
    path('commissions/<int:pk>/ready/', views.commission_set_ready, name='commission-set-ready'),
    path('commissions/<int:pk>/withdraw/', views.commission_withdraw, name='commission-withdraw'),
    path('commissions/<int:pk>/revert-withdrawal/', views.commission_revert_withdrawal, name='commission-revert-withdrawal'),
    path('commissions/<int:pk>/reset/', views.commission_reset, name='commission-reset'),
    path('commissions/<int:pk>/return/', views.commission_return_init, name='commission-return-init'),
    path('commissions/<int:pk>/return/ready/', views.commission_return_ready, name='commission-return-ready'),
    path('commissions/<int:pk>/return/complete/', views.commission_return_complete, name='commission-return-complete'),
    path('commissions/<int:pk>/restore/', views.commission_restore, name='commission-restore'),
    path('commissions/<int:pk>/permanent/', views.commission_delete_permanently, name='commission-delete-permanently'),
    path('commissions/<int:pk>/office/', views.commission_office, name='commission-office'),
    path('commissions/<int:pk>/events/', views.commission_events, name='commission-events'),
    path('commissions/<int:pk>/queue-label/', views.commission_queue_label, name='commission-queue-label'),
    path('commission-items/<int:pk>/pick/', views.commission_item_toggle_pick, name='commission-item-pick'),
    path('commission-items/<int:pk>/backorder/', views.commission_item_toggle_backorder, name='commission-item-backorder'),
    path('commission-items/<int:pk>/note/', views.commission_item_note, name='commission-item-note'),
    path('commission-items/<int:pk>/attachment/', views.commission_item_attachment, name='commission-item-attachment'),
]
