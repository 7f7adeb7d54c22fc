import asyncio
import threading
from datetime import date, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from havenstay.config import settings
from havenstay.database import Base
from havenstay.models.booking import Booking, BookingStatus
from havenstay.models.property import Property
from havenstay.models.user import User, UserRole
from havenstay.schemas.booking import BookingCreate
from havenstay.services.booking_rules import BookingValidationError
from havenstay.services.booking_service import BookingService

API = settings.API_PREFIX


def _days(n):
    return (date.today() + timedelta(days=n)).isoformat()


def _book(client, prop_id, start=10, end=13, guests=2):
    return client.post(
        f"{API}/bookings",
        json={
            "property_id": prop_id,
            "start_date": _days(start),
            "end_date": _days(end),
            "number_of_guests": guests,
        },
    )


def _setup(make_user, make_property, **prop_fields):
    owner = make_user(UserRole.OWNER)
    traveler = make_user(UserRole.TRAVELER)
    prop = make_property(owner, **prop_fields)
    return owner, traveler, prop


def test_create_booking_prices_stay(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property, price_per_night=120.0)
    login_as(traveler)

    r = _book(client, prop.id, start=10, end=13)
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["message"] == "Booking request sent successfully"
    booking = data["booking"]
    assert booking["status"] == "pending"
    assert booking["total_price"] == 360.0
    assert booking["traveler_id"] == traveler.id
    assert booking["property_name"] == prop.property_name


def test_owner_cannot_create_booking(client, make_user, make_property, login_as):
    owner, _, prop = _setup(make_user, make_property)
    login_as(owner)
    r = _book(client, prop.id)
    assert r.status_code == 403


def test_booking_requires_session(client, make_user, make_property):
    _, _, prop = _setup(make_user, make_property)
    r = _book(client, prop.id)
    assert r.status_code == 401


def test_booking_unknown_property(client, make_user, login_as):
    login_as(make_user(UserRole.TRAVELER))
    r = _book(client, 999)
    assert r.status_code == 404
    assert r.json() == {"error": "Property not found"}


def test_booking_over_guest_limit(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property, max_guests=2)
    login_as(traveler)
    r = _book(client, prop.id, guests=3)
    assert r.status_code == 400
    assert r.json()["rule"] == "guest_limit"


def test_booking_end_before_start(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    r = _book(client, prop.id, start=10, end=10)
    assert r.status_code == 400
    assert r.json()["rule"] == "date_order"


def test_overlapping_booking_is_rejected(
    client, db_session, make_user, make_property, login_as
):
    _, traveler, prop = _setup(make_user, make_property)
    other = make_user(UserRole.TRAVELER)

    login_as(traveler)
    assert _book(client, prop.id, start=10, end=14).status_code == 201

    login_as(other)
    r = _book(client, prop.id, start=12, end=16)
    assert r.status_code == 409
    body = r.json()
    assert body["rule"] == "availability"
    assert "error" in body

    # checkout day can be the next check-in day
    assert _book(client, prop.id, start=14, end=16).status_code == 201
    assert db_session.query(Booking).count() == 2


def test_cancelled_booking_frees_dates(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    first = _book(client, prop.id).json()["booking"]
    r = client.put(f"{API}/bookings/{first['id']}/cancel")
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "cancelled"

    assert _book(client, prop.id).status_code == 201


def test_owner_accepts_and_transitions_are_enforced(
    client, make_user, make_property, login_as
):
    owner, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    booking_id = _book(client, prop.id).json()["booking"]["id"]

    # the traveler is a party but cannot accept
    assert client.put(f"{API}/bookings/{booking_id}/accept").status_code == 403

    login_as(owner)
    r = client.put(f"{API}/bookings/{booking_id}/accept")
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "accepted"

    again = client.put(f"{API}/bookings/{booking_id}/accept")
    assert again.status_code == 409
    assert again.json()["rule"] == "invalid_transition"

    assert client.put(f"{API}/bookings/{booking_id}/cancel").status_code == 200
    cancelled_again = client.put(f"{API}/bookings/{booking_id}/cancel")
    assert cancelled_again.status_code == 409


def test_accept_rechecks_other_accepted_bookings(
    client, db_session, make_user, make_property, login_as
):
    owner, traveler, prop = _setup(make_user, make_property)
    # Two pending requests that overlap (e.g. written before the lock existed)
    start = date.today() + timedelta(days=10)
    for offset in (0, 1):
        db_session.add(
            Booking(
                property_id=prop.id,
                traveler_id=traveler.id,
                start_date=start + timedelta(days=offset),
                end_date=start + timedelta(days=offset + 3),
                number_of_guests=1,
                total_price=300.0,
                status=BookingStatus.PENDING,
            )
        )
    db_session.commit()
    first, second = db_session.query(Booking).order_by(Booking.id).all()

    login_as(owner)
    assert client.put(f"{API}/bookings/{first.id}/accept").status_code == 200
    r = client.put(f"{API}/bookings/{second.id}/accept")
    assert r.status_code == 409
    assert r.json()["rule"] == "availability"

    db_session.expire_all()
    accepted = (
        db_session.query(Booking)
        .filter(Booking.status == BookingStatus.ACCEPTED)
        .count()
    )
    assert accepted == 1


def test_booking_visibility(client, make_user, make_property, login_as):
    owner, traveler, prop = _setup(make_user, make_property)
    stranger = make_user(UserRole.TRAVELER)
    login_as(traveler)
    booking_id = _book(client, prop.id).json()["booking"]["id"]

    assert client.get(f"{API}/bookings/{booking_id}").status_code == 200
    listed = client.get(f"{API}/bookings").json()["bookings"]
    assert [b["id"] for b in listed] == [booking_id]

    login_as(owner)
    assert client.get(f"{API}/bookings/{booking_id}").status_code == 200
    owner_list = client.get(f"{API}/bookings").json()["bookings"]
    assert [b["id"] for b in owner_list] == [booking_id]
    assert owner_list[0]["traveler_name"] == traveler.name

    login_as(stranger)
    assert client.get(f"{API}/bookings/{booking_id}").status_code == 403
    assert client.put(f"{API}/bookings/{booking_id}/cancel").status_code == 403
    assert client.get(f"{API}/bookings").json()["bookings"] == []
    assert client.get(f"{API}/bookings/999").status_code == 404


def test_booked_nights_show_as_blocked(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    _book(client, prop.id, start=5, end=7)

    r = client.get(f"{API}/properties/{prop.id}")
    assert r.status_code == 200
    assert r.json()["blockedDates"] == [_days(5), _days(6)]


def test_owner_cancels_pending_request(client, make_user, make_property, login_as):
    owner, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    booking_id = _book(client, prop.id).json()["booking"]["id"]

    login_as(owner)
    r = client.put(f"{API}/bookings/{booking_id}/cancel")
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "cancelled"

    # cancelled is terminal
    assert client.put(f"{API}/bookings/{booking_id}/accept").status_code == 409


def test_traveler_cancels_accepted_booking(client, make_user, make_property, login_as):
    owner, traveler, prop = _setup(make_user, make_property)
    login_as(traveler)
    booking_id = _book(client, prop.id).json()["booking"]["id"]
    login_as(owner)
    assert client.put(f"{API}/bookings/{booking_id}/accept").status_code == 200

    login_as(traveler)
    r = client.put(f"{API}/bookings/{booking_id}/cancel")
    assert r.status_code == 200, r.text
    assert r.json()["booking"]["status"] == "cancelled"

    # the freed dates can be booked again
    assert _book(client, prop.id).status_code == 201


def test_other_owner_cannot_accept(client, make_user, make_property, login_as):
    _, traveler, prop = _setup(make_user, make_property)
    rival = make_user(UserRole.OWNER)
    login_as(traveler)
    booking_id = _book(client, prop.id).json()["booking"]["id"]

    login_as(rival)
    r = client.put(f"{API}/bookings/{booking_id}/accept")
    assert r.status_code == 403
    assert r.json() == {"error": "Only the property owner can accept this booking"}

    login_as(traveler)
    assert client.get(f"{API}/bookings/{booking_id}").json()["booking"]["status"] == "pending"


def test_concurrent_requests_for_same_stay_create_one_booking(tmp_path):
    workers = 8
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=workers,
    )
    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with SessionFactory() as db:
        owner = User(name="O", email="o@example.com", password_hash="x", role=UserRole.OWNER)
        db.add(owner)
        db.flush()
        prop = Property(
            owner_id=owner.id, property_name="Race Flat", price_per_night=80.0, max_guests=2
        )
        travelers = [
            User(name=f"T{i}", email=f"t{i}@example.com", password_hash="x", role=UserRole.TRAVELER)
            for i in range(workers)
        ]
        db.add_all([prop, *travelers])
        db.commit()
        prop_id = prop.id
        traveler_ids = [t.id for t in travelers]

    start = date.today() + timedelta(days=40)
    request = BookingCreate(
        property_id=prop_id,
        start_date=start,
        end_date=start + timedelta(days=3),
        number_of_guests=1,
    )
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def attempt(traveler_id):
        db = SessionFactory()
        try:
            barrier.wait()
            asyncio.run(BookingService().create_booking(db, request, traveler_id))
            result = "created"
        except BookingValidationError as e:
            result = e.rule
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(tid,)) for tid in traveler_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    try:
        assert sorted(outcomes) == ["availability"] * (workers - 1) + ["created"]
        with SessionFactory() as db:
            assert db.query(Booking).filter(Booking.property_id == prop_id).count() == 1
    finally:
        engine.dispose()
