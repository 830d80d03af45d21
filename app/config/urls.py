from api import views
from django.urls import path

urlpatterns = [
    path("health/", views.HealthCheck.as_view(), name="health_check"),
    # Redemption sessions
    path("redemption/sessions/", views.create_session, name="create_session"),
    path("redemption/sessions/<str:session_id>/", views.session_detail, name="session_detail"),
    path("redemption/sessions/<str:session_id>/reset/", views.reset_session, name="reset_session"),
    path("redemption/sessions/<str:session_id>/method/", views.select_method, name="select_method"),
    path("redemption/sessions/<str:session_id>/back/", views.back_to_method, name="back_to_method"),
    path("redemption/sessions/<str:session_id>/guest-phone/", views.set_guest_phone, name="set_guest_phone"),
    path(
        "redemption/sessions/<str:session_id>/vendor-mobile-money/",
        views.enter_vendor_mobile_money,
        name="enter_vendor_mobile_money"
    ),
    path("redemption/sessions/<str:session_id>/vendor-search/", views.enter_vendor_search, name="enter_vendor_search"),
    path("redemption/sessions/<str:session_id>/vendor/", views.select_vendor, name="select_vendor"),
    path("redemption/sessions/<str:session_id>/branch/", views.select_branch, name="select_branch"),
    path("redemption/sessions/<str:session_id>/card-type/", views.select_card_type, name="select_card_type"),
    path("redemption/sessions/<str:session_id>/card/", views.select_card, name="select_card"),
    path("redemption/sessions/<str:session_id>/amount/", views.enter_amount, name="enter_amount"),
    path("redemption/sessions/<str:session_id>/submit/", views.submit_redemption, name="submit_redemption"),
    path("redemption/sessions/<str:session_id>/rating/start/", views.start_rating, name="start_rating"),
    path("redemption/sessions/<str:session_id>/rating/", views.set_rating, name="set_rating"),
    path("redemption/sessions/<str:session_id>/rating/submit/", views.submit_rating, name="submit_rating"),
    path("redemption/sessions/<str:session_id>/rating/skip/", views.skip_rating, name="skip_rating"),
]
