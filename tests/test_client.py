"""
Client-side tests: Auth Service, Session Store, transport and guards.

The client talks to the real app in-process through ``httpx.ASGITransport``;
transport error mapping is exercised with ``httpx.MockTransport``.
"""

import json
from datetime import date, timedelta

import httpx
import pytest
import pytest_asyncio

from rideshare.client.auth import AuthService
from rideshare.client.guard import DRIVER_MODE, PASSENGER_MODE, AccessGuard, Redirect
from rideshare.client.resources import (
    BookingClient,
    BookingContact,
    CatalogClient,
    RatingClient,
)
from rideshare.client.session import FileSessionStore, MemorySessionStore, Session
from rideshare.client.transport import ApiClient, _scrub_sensitive
from rideshare.domain.enums import BookingStatus, Role
from rideshare.domain.errors import (
    AuthError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RequestTimeoutError,
    TransportError,
    ValidationError,
)

PASSWORD = "secret1"


@pytest_asyncio.fixture
async def make_auth(app):
    """Build ``AuthService`` instances sharing the in-process app."""
    clients: list[ApiClient] = []

    def _make(store=None) -> AuthService:
        api = ApiClient(
            store or MemorySessionStore(),
            base_url="http://test/api",
            transport=httpx.ASGITransport(app=app),
        )
        clients.append(api)
        return AuthService(api)

    yield _make
    for api in clients:
        await api.aclose()


async def _signed_up(make_auth, role: Role, n: int) -> AuthService:
    auth = make_auth()
    register = auth.register_driver if role is Role.DRIVER else auth.register_passenger
    await register(
        f"{role.value.title()} {n}",
        f"{role.value}{n}@example.com",
        f"98200{n:05d}",
        PASSWORD,
        PASSWORD,
    )
    return auth


# ── Auth Service ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_then_login_saves_session(make_auth):
    await _signed_up(make_auth, Role.PASSENGER, 1)

    store = MemorySessionStore()
    auth = make_auth(store)
    assert not auth.is_authenticated

    account = await auth.login_passenger("passenger1@example.com", PASSWORD)
    assert account.name == "Passenger 1"
    assert auth.is_authenticated
    assert auth.is_passenger and auth.is_in_passenger_mode
    assert not auth.is_driver

    saved = store.load()
    assert saved.token
    assert saved.role is Role.PASSENGER
    assert saved.account["activeRole"] == "passenger"


@pytest.mark.asyncio
async def test_bad_credentials_raise_auth_error_and_keep_session_empty(make_auth):
    await _signed_up(make_auth, Role.PASSENGER, 1)
    auth = make_auth()

    with pytest.raises(AuthError, match="Invalid email or password"):
        await auth.login_passenger("passenger1@example.com", "wrong-password")
    with pytest.raises(AuthError):
        await auth.login_driver("passenger1@example.com", PASSWORD)
    assert not auth.is_authenticated


@pytest.mark.asyncio
async def test_registration_is_validated_before_sending(make_auth):
    auth = make_auth()
    with pytest.raises(ValidationError) as exc:
        await auth.register_passenger("Asha", "asha@example.com", "9820011001", "abc", "abc")
    assert exc.value.errors == ["Password must be at least 6 characters"]
    assert not auth.is_authenticated


@pytest.mark.asyncio
async def test_unauthorized_response_clears_session_everywhere(make_auth):
    store = MemorySessionStore(
        Session(token="stale", account={"id": 1}, role=Role.DRIVER, active_role=Role.DRIVER)
    )
    auth = make_auth(store)
    assert auth.is_authenticated

    notified = []
    auth.api.add_unauthorized_listener(lambda: notified.append(True))

    with pytest.raises(AuthError):
        await auth.api.get("/auth/me")

    assert store.load() is None
    assert not auth.is_authenticated
    assert notified == [True]


@pytest.mark.asyncio
async def test_passenger_cannot_switch_role(make_auth):
    auth = await _signed_up(make_auth, Role.PASSENGER, 1)

    with pytest.raises(AuthorizationError):
        await auth.switch_role("driver")
    assert auth.active_role is Role.PASSENGER
    assert auth.store.load().active_role is Role.PASSENGER


@pytest.mark.asyncio
async def test_driver_switch_role_updates_session(make_auth):
    auth = await _signed_up(make_auth, Role.DRIVER, 1)
    assert DRIVER_MODE.matches(auth)

    ack = await auth.switch_role("passenger")
    assert ack.active_role is Role.PASSENGER
    assert auth.role is Role.DRIVER
    assert auth.is_in_passenger_mode
    assert auth.store.load().active_role is Role.PASSENGER
    assert PASSENGER_MODE.matches(auth)
    assert not DRIVER_MODE.matches(auth)

    await auth.switch_role("driver")
    assert DRIVER_MODE.matches(auth)


@pytest.mark.asyncio
async def test_switch_role_requires_login(make_auth):
    with pytest.raises(AuthError):
        await make_auth().switch_role("passenger")


# ── Access guard ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_guard_redirects_after_logout(make_auth):
    auth = await _signed_up(make_auth, Role.DRIVER, 1)
    guard = AccessGuard(auth)

    @guard.protect
    async def dashboard():
        return "dashboard"

    @guard.protect
    def profile():
        return "profile"

    assert await dashboard() == "dashboard"
    assert profile() == "profile"

    auth.logout()
    assert auth.store.load() is None
    assert await dashboard() == Redirect("/driver/login")
    assert profile() == Redirect("/driver/login")
    assert guard.render(lambda: "x") == Redirect("/driver/login")


@pytest.mark.asyncio
async def test_guard_does_not_check_roles(make_auth):
    auth = await _signed_up(make_auth, Role.PASSENGER, 1)
    guard = AccessGuard(auth, fallback="/passenger/login")

    # Signed in is enough to render; the view picks what to show.
    page = guard.render(
        DRIVER_MODE.select, auth, lambda: "driver tools", lambda: "switch to driver"
    )
    assert page == "switch to driver"


# ── Resources ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_booking_flow_through_clients(make_auth):
    driver = await _signed_up(make_auth, Role.DRIVER, 1)
    passenger = await _signed_up(make_auth, Role.PASSENGER, 2)
    catalog = CatalogClient(driver.api)
    driver_bookings = BookingClient(driver.api)
    passenger_bookings = BookingClient(passenger.api)

    listing = await catalog.create(
        car_type="Sedan",
        pickup_location="Airport T2",
        drop_location="Powai",
        ride_date=date.today() + timedelta(days=2),
        ride_time="07:45",
        total_seats=3,
    )
    assert listing.available_seats == 3

    found = await CatalogClient(passenger.api).list_available(pickup="airport")
    assert [item.id for item in found] == [listing.id]

    contact = BookingContact.from_account(passenger.account)
    booking = await passenger_bookings.create(listing.id, 2, contact)
    assert booking.status is BookingStatus.PENDING
    assert booking.passenger_phone == "9820000002"

    inbox = await driver_bookings.driver_requests()
    assert [item.id for item in inbox] == [booking.id]

    accepted = await driver_bookings.accept(booking.id)
    assert accepted.status is BookingStatus.ACCEPTED
    [mine] = await catalog.list_mine()
    assert mine.available_seats == 1

    with pytest.raises(ConflictError):
        await driver_bookings.reject(booking.id, "too late")

    cancelled = await passenger_bookings.cancel(booking.id)
    assert cancelled.status is BookingStatus.CANCELLED
    [mine] = await catalog.list_mine()
    assert mine.available_seats == 3

    history = await passenger_bookings.my_requests(BookingStatus.CANCELLED)
    assert [item.id for item in history] == [booking.id]

    deleted = await catalog.delete(listing.id)
    assert deleted.cancelled_requests == 0


@pytest.mark.asyncio
async def test_listing_is_validated_before_sending(make_auth):
    driver = await _signed_up(make_auth, Role.DRIVER, 1)
    with pytest.raises(ValidationError) as exc:
        await CatalogClient(driver.api).create(
            car_type="",
            pickup_location="A",
            drop_location="B",
            ride_date=None,
            ride_time="7am",
            total_seats=4,
        )
    assert exc.value.errors == [
        "Car type is required",
        "Date is required",
        "Time must be HH:MM",
    ]


def test_booking_contact_validates():
    with pytest.raises(ValidationError):
        BookingContact(name="Asha", phone="12345")
    contact = BookingContact.from_account({"name": "Asha", "phone": "9820011001"})
    assert contact == BookingContact(name="Asha", phone="9820011001")
    assert BookingContact.from_account(None, "Ravi", "9820011002").name == "Ravi"


@pytest.mark.asyncio
async def test_ratings_for_unknown_driver_read_as_empty(make_auth):
    passenger = await _signed_up(make_auth, Role.PASSENGER, 1)
    summary = await RatingClient(passenger.api).list_for_driver(9999)
    assert summary.average_rating == 0.0
    assert summary.total_ratings == 0
    assert summary.ratings == []


@pytest.mark.asyncio
async def test_rating_is_validated_before_sending(make_auth):
    passenger = await _signed_up(make_auth, Role.PASSENGER, 1)
    with pytest.raises(ValidationError):
        await RatingClient(passenger.api).submit(driver_id=1, ride_id=1, rating=0)


# ── Session store ─────────────────────────────────────────────────────


class TestFileSessionStore:
    def test_save_load_clear(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        store = FileSessionStore(path)
        assert store.load() is None

        session = Session(
            token="t0k",
            account={"id": 7, "name": "Asha"},
            role=Role.DRIVER,
            active_role=Role.PASSENGER,
        )
        store.save(session)
        assert store.load() == session
        assert (path.stat().st_mode & 0o777) == 0o600

        store.clear()
        assert not path.exists()
        assert store.load() is None
        store.clear()

    def test_partial_record_is_not_a_session(self, tmp_path):
        path = tmp_path / "session.json"
        store = FileSessionStore(path)

        path.write_text(json.dumps({"token": "t0k", "role": "driver"}))
        assert store.load() is None

        path.write_text(json.dumps({"token": "t0k", "account": {"id": 1}, "role": "pilot"}))
        assert store.load() is None

        path.write_text("{not json")
        assert store.load() is None

    def test_passenger_record_is_forced_to_passenger_mode(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(
            json.dumps(
                {
                    "token": "t0k",
                    "account": {"id": 1},
                    "role": "passenger",
                    "active_role": "driver",
                }
            )
        )
        assert FileSessionStore(path).load().active_role is Role.PASSENGER


# ── Transport ─────────────────────────────────────────────────────────


def _api(handler) -> ApiClient:
    return ApiClient(
        MemorySessionStore(Session(token="t0k", account={"id": 1}, role=Role.PASSENGER)),
        base_url="http://test/api",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_transport_sends_bearer_and_drops_empty_params():
    seen = {}

    def handler(request: httpx.Request):
        seen["auth"] = request.headers.get("Authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[])

    async with _api(handler) as api:
        assert await api.get("/vehicles", params={"pickup": "T2", "drop": "", "date": None}) == []

    assert seen["auth"] == "Bearer t0k"
    assert seen["url"] == "http://test/api/vehicles?pickup=T2"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body, expected",
    [
        (400, {"detail": "bad", "errors": ["a", "b"]}, ValidationError),
        (403, {"detail": "no"}, AuthorizationError),
        (404, {"detail": "missing"}, NotFoundError),
        (409, {"detail": "taken"}, ConflictError),
        (429, {"error": "Rate limit exceeded"}, TransportError),
        (502, {}, TransportError),
    ],
)
async def test_status_codes_map_to_errors(status, body, expected):
    async with _api(lambda request: httpx.Response(status, json=body)) as api:
        with pytest.raises(expected):
            await api.get("/anything")


@pytest.mark.asyncio
async def test_error_details_are_carried():
    async with _api(
        lambda request: httpx.Response(400, json={"detail": "a | b", "errors": ["a", "b"]})
    ) as api:
        with pytest.raises(ValidationError) as exc:
            await api.post("/vehicles", json={})
    assert exc.value.message == "a | b"
    assert exc.value.errors == ["a", "b"]


@pytest.mark.asyncio
async def test_request_shape_errors_become_validation_errors():
    detail = [{"loc": ["body", "rating"], "msg": "Field required", "type": "missing"}]
    async with _api(lambda request: httpx.Response(422, json={"detail": detail})) as api:
        with pytest.raises(ValidationError) as exc:
            await api.post("/ratings", json={})
    assert exc.value.errors == ["Field required"]


@pytest.mark.asyncio
async def test_network_failures():
    def timeout(request):
        raise httpx.ReadTimeout("slow", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    async with _api(timeout) as api:
        with pytest.raises(RequestTimeoutError):
            await api.get("/vehicles")
    async with _api(refused) as api:
        with pytest.raises(TransportError) as exc:
            await api.get("/vehicles")
    assert not isinstance(exc.value, RequestTimeoutError)


@pytest.mark.asyncio
async def test_login_401_does_not_broadcast():
    notified = []
    api = _api(lambda request: httpx.Response(401, json={"detail": "nope"}))
    api.add_unauthorized_listener(lambda: notified.append(True))

    with pytest.raises(AuthError):
        await api.post("/auth/passenger/login", json={}, invalidate_on_401=False)
    assert notified == []
    assert api.store.load() is not None
    await api.aclose()


def test_scrub_sensitive():
    assert _scrub_sensitive(
        {"email": "a@example.com", "password": "x", "nested": [{"passwordConfirm": "y"}]}
    ) == {"email": "a@example.com", "password": "***", "nested": [{"passwordConfirm": "***"}]}
