from tests.constants import TEST_EMAIL


def _payload(slot, guests=2, **overrides):
    body = {
        "experienceId": slot.experience_id,
        "timeSlotId": slot.id,
        "customer": {"name": "Asha Rao", "email": TEST_EMAIL, "phone": "+91 98450 12345"},
        "numberOfGuests": guests,
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_fetch_booking(client, make_slot, make_promo):
    slot = make_slot()
    make_promo(code="SAVE10")

    r = client.post("/api/v1/bookings", json=_payload(slot, promoCode="save10"))
    assert r.status_code == 201
    data = r.json()
    assert data["status"] == "confirmed"
    assert data["pricing"] == {
        "basePrice": 100000,
        "totalAmount": 200000,
        "discountAmount": 20000,
        "taxAmount": 18000,
        "finalAmount": 198000,
        "currency": "INR",
        "totalSavings": 20000,
    }
    assert data["promoCode"]["code"] == "SAVE10"

    r = client.get(f"/api/v1/bookings/{data['bookingReference']}")
    assert r.status_code == 200
    assert r.json()["bookingReference"] == data["bookingReference"]


def test_error_body_shape(client, make_slot):
    slot = make_slot(total_capacity=1)

    invalid = client.post("/api/v1/bookings", json=_payload(slot, numberOfGuests=0))
    missing = client.get("/api/v1/bookings/HDNOTHERE")
    full = client.post("/api/v1/bookings", json=_payload(slot, guests=2))

    assert invalid.status_code == 400
    assert invalid.json()["detail"]["kind"] == "validation_error"
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NotFound"
    assert full.status_code == 409
    assert full.json()["detail"] == {
        "kind": "conflict",
        "code": "InsufficientCapacity",
        "messages": ["Only 1 spots available, but 2 requested"],
    }


def test_policy_errors_are_422(client, make_slot):
    slot = make_slot(days_ahead=0)

    r = client.post("/api/v1/bookings", json=_payload(slot))

    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "DeadlinePassed"


def test_cancel_booking(client, make_slot):
    slot = make_slot()
    ref = client.post("/api/v1/bookings", json=_payload(slot)).json()["bookingReference"]

    r = client.patch(f"/api/v1/bookings/{ref}/cancel", json={"reason": "Weather"})
    again = client.patch(f"/api/v1/bookings/{ref}/cancel")

    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["cancellation"]["reason"] == "Weather"
    assert r.json()["cancellation"]["refundAmount"] == r.json()["pricing"]["finalAmount"]
    assert again.status_code == 422
    assert again.json()["detail"]["code"] == "AlreadyCancelled"


def test_list_user_bookings(client, make_slot):
    slot = make_slot(total_capacity=10)
    for _ in range(3):
        client.post("/api/v1/bookings", json=_payload(slot, guests=1))

    r = client.get(f"/api/v1/bookings/user/{TEST_EMAIL}", params={"page": 1, "limit": 2})
    bad = client.get("/api/v1/bookings/user/not-an-email")

    assert r.status_code == 200
    assert len(r.json()["bookings"]) == 2
    assert r.json()["pagination"]["totalBookings"] == 3
    assert r.json()["pagination"]["hasNextPage"] is True
    assert bad.status_code == 400


def test_promo_validate_and_available(client, make_promo):
    make_promo(code="SAVE10")

    ok = client.post("/api/v1/promo/validate", json={"code": "save10", "userEmail": TEST_EMAIL, "orderValue": 200000})
    unknown = client.post("/api/v1/promo/validate", json={"code": "NOPE", "userEmail": TEST_EMAIL, "orderValue": 200000})
    available = client.get("/api/v1/promo/available")

    assert ok.status_code == 200
    assert (ok.json()["discountAmount"], ok.json()["finalAmount"]) == (20000, 180000)
    assert unknown.status_code == 404
    assert [p["code"] for p in available.json()] == ["SAVE10"]
    assert available.json()[0]["remainingUsage"] is None


def test_missing_fields_are_reported_together(client, make_slot):
    slot = make_slot()
    body = _payload(slot)
    del body["numberOfGuests"]
    del body["experienceId"]
    body["customer"] = {"name": None, "email": "bad"}

    r = client.post("/api/v1/bookings", json=body)

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert (detail["kind"], detail["code"]) == ("validation_error", "ValidationError")
    assert detail["messages"] == [
        "experienceId is required",
        "customer.name is required",
        "customer.email is not a valid email address",
        "numberOfGuests must be between 1 and 20",
    ]


def test_malformed_request_uses_error_shape(client, make_slot):
    bad_type = client.post("/api/v1/bookings", json=_payload(make_slot(), numberOfGuests="many"))
    bad_page = client.get(f"/api/v1/bookings/user/{TEST_EMAIL}", params={"page": "first"})

    for r in (bad_type, bad_page):
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "ValidationError"
    assert bad_type.json()["detail"]["messages"][0].startswith("numberOfGuests: ")
    assert bad_page.json()["detail"]["messages"][0].startswith("page: ")
