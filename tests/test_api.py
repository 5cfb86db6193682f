"""HTTP surface: routers, error mapping, dependency wiring."""
from datetime import date, timedelta

import pytest


@pytest.fixture
def regenerated(client, service, working_week, target_date):
    response = client.post(
        "/slots/regenerate",
        json={"service_id": service.id, "start_date": target_date.isoformat()},
    )
    assert response.status_code == 200
    return response.json()


def day_slots(client, service_id, target_date, **params):
    response = client.get(
        "/slots/day",
        params={"service_id": service_id, "date": target_date.isoformat(), **params},
    )
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"redis": True}


def test_services_crud(client):
    created = client.post("/services/", json={"name_en": "Notary", "name_ar": "توثيق"})
    assert created.status_code == 201
    service_id = created.json()["id"]

    assert client.get(f"/services/{service_id}").json()["name_en"] == "Notary"
    assert client.post("/services/", json={"name_en": "notary"}).status_code == 409
    assert client.patch(f"/services/{service_id}", json={"name_en": "Notary office"}).status_code == 200
    assert client.delete(f"/services/{service_id}").status_code == 204
    assert client.get("/services/").json() == []
    assert len(client.get("/services/", params={"include_inactive": True}).json()) == 1
    assert client.get("/services/999").status_code == 404


def test_working_hours_update_and_validation(client, working_week):
    response = client.put("/working_hours/1", json={"start_time": "8:00", "slot_interval_minutes": 15})
    assert response.status_code == 200
    assert response.json()["start_time"] == "08:00"
    assert response.json()["slot_interval_minutes"] == 15

    assert client.put("/working_hours/1", json={"slot_interval_minutes": 90}).status_code == 422
    assert client.put("/working_hours/1", json={"last_appointment_time": "15:00"}).status_code == 400
    assert client.delete("/working_hours/1").status_code == 405
    assert len(client.get("/working_hours/").json()) == 7


def test_effective_hours_and_preview(client, service, working_week, target_date):
    hours = client.get("/slots/hours", params={"date": target_date.isoformat()}).json()
    assert hours["is_open"] is True
    assert hours["source"] == "weekday"

    preview = client.get(
        "/slots/preview", params={"service_id": service.id, "date": target_date.isoformat()}
    ).json()
    assert len(preview["slots"]) == 9


def test_preview_of_holiday_is_closed_day(client, service, working_week, target_date):
    put = client.put(
        f"/day_specific_hours/{target_date.isoformat()}",
        json={"is_holiday": True, "holiday_reason_en": "Eid"},
    )
    assert put.status_code == 200

    response = client.get(
        "/slots/preview", params={"service_id": service.id, "date": target_date.isoformat()}
    )
    assert response.status_code == 409
    assert response.json()["code"] == "closed_day"


def test_day_specific_hours_requires_window(client, target_date):
    response = client.put(f"/day_specific_hours/{target_date.isoformat()}", json={"start_time": "09:00"})
    assert response.status_code == 422


def test_day_specific_override_with_break(client, service, working_week, target_date):
    client.put(
        f"/day_specific_hours/{target_date.isoformat()}",
        json={
            "start_time": "10:00",
            "end_time": "14:30",
            "last_appointment_time": "14:00",
            "break_times": [{"start": "12:00", "end": "12:30"}],
        },
    )

    regen = client.post(
        "/slots/regenerate",
        json={"service_id": service.id, "start_date": target_date.isoformat()},
    ).json()
    assert regen["created"] == 8

    stored = client.get(f"/day_specific_hours/{target_date.isoformat()}").json()
    assert stored["break_times"] == [{"start": "12:00", "end": "12:30"}]

    assert client.delete(f"/day_specific_hours/{target_date.isoformat()}").status_code == 204
    assert client.get(f"/day_specific_hours/{target_date.isoformat()}").status_code == 404


def test_regenerate_reports_counts(regenerated, service):
    assert regenerated["created"] == 9
    assert regenerated["partial_failure"] is False
    assert regenerated["services"][0]["service_id"] == service.id


def test_booking_flow(client, service, target_date, regenerated):
    slots = day_slots(client, service.id, target_date, duration=60)
    first = slots["bookable"][0]
    assert first["start_time"] == "10:00"
    assert first["end_time"] == "11:00"

    created = client.post("/bookings/", json={
        "service_id": service.id,
        "booking_date": target_date.isoformat(),
        "slot_id": first["slot_id"],
        "duration_minutes": 60,
        "full_name": "Amal",
    })
    assert created.status_code == 201
    booking = created.json()
    assert booking["second_slot_id"] == first["slot_ids"][1]

    after = day_slots(client, service.id, target_date, duration=30)
    taken = {s["id"]: s for s in after["slots"]}
    assert taken[first["slot_id"]]["booking_id"] == booking["id"]
    assert first["slot_id"] not in [s["slot_id"] for s in after["bookable"]]

    again = client.post("/bookings/", json={
        "service_id": service.id,
        "booking_date": target_date.isoformat(),
        "slot_id": first["slot_id"],
        "duration_minutes": 30,
        "full_name": "Late",
    })
    assert again.status_code == 409
    assert again.json()["code"] == "already_claimed"

    cancelled = client.post(f"/bookings/{booking['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancelled_by_user"] is True

    bookable = day_slots(client, service.id, target_date, duration=60)["bookable"]
    assert bookable[0]["slot_id"] == first["slot_id"]


def test_bookings_cannot_be_patched_or_deleted(client):
    assert client.patch("/bookings/1", json={}).status_code == 405
    assert client.delete("/bookings/1").status_code == 405


def test_reserve_and_release_endpoints(client, service, target_date, regenerated):
    slot_id = day_slots(client, service.id, target_date)["slots"][0]["id"]
    body = {
        "service_id": service.id,
        "date": target_date.isoformat(),
        "slot_id": slot_id,
        "duration_minutes": 60,
    }

    reserved = client.post("/slots/reserve", json=body)
    assert reserved.status_code == 200
    assert len(reserved.json()["slot_ids"]) == 2

    assert client.post("/slots/reserve", json=body).status_code == 409
    assert client.post("/slots/release", json=body).json()["success"] is True
    assert client.post("/slots/reserve", json={**body, "duration_minutes": 45}).status_code == 400


def test_block_unblock_and_claim(client, service, target_date, regenerated):
    slot_id = day_slots(client, service.id, target_date)["slots"][0]["id"]

    assert client.post(f"/slots/{slot_id}/block").json()["is_blocked_by_admin"] is True
    blocked = client.post(f"/slots/{slot_id}/claim")
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "blocked"

    client.post(f"/slots/{slot_id}/unblock")
    assert client.post(f"/slots/{slot_id}/claim").status_code == 200
    assert client.post(f"/slots/{slot_id}/release").status_code == 200
    assert client.post("/slots/999999/claim").status_code == 404


def test_blocked_date_zeroes_stats(client, service, target_date, regenerated):
    params = {
        "service_id": service.id,
        "start_date": target_date.isoformat(),
        "end_date": target_date.isoformat(),
    }
    assert client.get("/slots/stats", params=params).json()["days"][0]["available_slots"] == 9

    created = client.post(
        "/blocked_dates/", json={"date": target_date.isoformat(), "reason_en": "Audit"}
    )
    assert created.status_code == 201
    assert client.post(
        "/blocked_dates/", json={"date": target_date.isoformat(), "reason_en": "Audit"}
    ).status_code == 409

    day = client.get("/slots/stats", params=params).json()["days"][0]
    assert day["available_slots"] == 0
    assert day["is_blocked"] is True

    assert client.delete(f"/blocked_dates/{created.json()['id']}").status_code == 204
    assert client.get("/slots/stats", params=params).json()["days"][0]["available_slots"] == 9


def test_stats_range_validation(client, service, target_date):
    params = {
        "service_id": service.id,
        "start_date": target_date.isoformat(),
        "end_date": (target_date - timedelta(days=1)).isoformat(),
    }
    assert client.get("/slots/stats", params=params).status_code == 400


def test_day_listing_horizon(client, service, working_week):
    past = date.today() - timedelta(days=1)
    far = date.today() + timedelta(days=365)

    for target in (past, far):
        response = client.get(
            "/slots/day",
            params={"service_id": service.id, "date": target.isoformat(), "duration": 30},
        )
        assert response.status_code == 400


def test_assign_booking_to_staff(client, service, target_date, regenerated):
    slot_id = day_slots(client, service.id, target_date)["slots"][0]["id"]
    booking = client.post("/bookings/", json={
        "service_id": service.id,
        "booking_date": target_date.isoformat(),
        "slot_id": slot_id,
        "duration_minutes": 30,
        "full_name": "Amal",
    }).json()

    assigned = client.post(f"/bookings/{booking['id']}/assign", json={"assigned_admin_id": "staff-7"})
    assert assigned.status_code == 200
    assert assigned.json()["assigned_admin_id"] == "staff-7"
    assert client.get(f"/bookings/{booking['id']}").json()["assigned_admin_id"] == "staff-7"

    cleared = client.post(f"/bookings/{booking['id']}/assign", json={})
    assert cleared.json()["assigned_admin_id"] is None
    assert client.post("/bookings/999/assign", json={}).status_code == 404


def test_release_endpoint_rejects_mismatched_date(client, service, target_date, regenerated):
    slot_id = day_slots(client, service.id, target_date)["slots"][0]["id"]
    body = {
        "service_id": service.id,
        "date": target_date.isoformat(),
        "slot_id": slot_id,
        "duration_minutes": 30,
    }
    assert client.post("/slots/reserve", json=body).status_code == 200

    wrong = {**body, "date": (target_date + timedelta(days=1)).isoformat()}
    response = client.post("/slots/release", json=wrong)

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_selection"
